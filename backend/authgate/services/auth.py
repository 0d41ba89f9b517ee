"""Authentication service: registration, login and bearer-token sessions."""

import asyncio
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from authgate.core import settings
from authgate.models.user import User
from authgate.services.errors import (
    AuthError,
    DuplicateEmailError,
    InputValidationError,
    InvalidCredentialsError,
    UnauthenticatedError,
)
from authgate.services.passwords import dummy_password_hash, hash_password, verify_password
from authgate.services.revocation import RevocationRegistry
from authgate.services.tokens import (
    MintedToken,
    TokenClaims,
    TokenCodec,
    TokenConfig,
    TokenError,
    TokenMintError,
)
from authgate.services.user_store import UserStore
from authgate.services.validation import validate_login, validate_registration

logger = logging.getLogger(__name__)

__all__ = [
    "AuthError",
    "AuthResult",
    "AuthService",
    "DuplicateEmailError",
    "InputValidationError",
    "InvalidCredentialsError",
    "TokenMintError",
    "UnauthenticatedError",
    "get_token_codec",
]


@lru_cache
def get_token_codec() -> TokenCodec:
    """Process-wide codec built from settings."""
    return TokenCodec(TokenConfig.from_settings(settings))


@dataclass(frozen=True)
class AuthResult:
    """A user together with a freshly minted token."""

    user: User
    token: MintedToken


class AuthService:
    """Service for authentication operations."""

    def __init__(self, db: AsyncSession, codec: TokenCodec | None = None):
        self.db = db
        self.codec = codec or get_token_codec()
        self.users = UserStore(db)
        self.revocations = RevocationRegistry(db)

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds, as reported to clients."""
        return self.codec.ttl_seconds

    async def register(
        self, name: Any, email: Any, password: Any, password_confirmation: Any
    ) -> AuthResult:
        """Create a new account and log it in.

        Raises InputValidationError for bad input and DuplicateEmailError
        when the email is already registered.
        """
        name, email, password = validate_registration(name, email, password, password_confirmation)

        # Argon2 is CPU-bound; keep it off the event loop
        password_hash = await asyncio.to_thread(hash_password, password)
        user = await self.users.create(name, email, password_hash)

        minted = self.codec.mint(user.id)
        await self.db.commit()

        logger.info("User registered", extra={"user_id": str(user.id), "email": user.email})
        return AuthResult(user=user, token=minted)

    async def login(self, email: Any, password: Any) -> AuthResult:
        """Authenticate by email and password.

        Raises InvalidCredentialsError for both "user not found" and
        "wrong password" to prevent user enumeration.
        """
        email, password = validate_login(email, password)
        user = await self.users.find_by_email(email)

        if user is None:
            # Perform a dummy verification to prevent timing attacks
            await asyncio.to_thread(verify_password, password, dummy_password_hash())
            logger.info("Failed login attempt", extra={"email": email})
            raise InvalidCredentialsError("Invalid credentials")

        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            logger.info("Failed login attempt", extra={"email": email})
            raise InvalidCredentialsError("Invalid credentials")

        minted = self.codec.mint(user.id)
        logger.info(
            "User logged in", extra={"user_id": str(user.id), "jti": minted.claims.unique_id}
        )
        return AuthResult(user=user, token=minted)

    async def _authenticate_token(self, token: str | None) -> tuple[TokenClaims, User]:
        if not token:
            raise UnauthenticatedError("Missing bearer token")
        try:
            claims = self.codec.decode(token)
        except TokenError as e:
            logger.debug(f"Rejected bearer token: {e}")
            raise UnauthenticatedError(str(e)) from e

        if await self.revocations.is_revoked(claims.unique_id):
            logger.debug("Rejected revoked token", extra={"jti": claims.unique_id})
            raise UnauthenticatedError("Token has been revoked")

        user = await self.users.find_by_id(claims.subject)
        if user is None:
            logger.warning(
                "Valid token for unknown user",
                extra={"user_id": claims.subject, "jti": claims.unique_id},
            )
            raise UnauthenticatedError("User not found")
        return claims, user

    async def current_user(self, token: str | None) -> User:
        """Resolve a bearer token to its user."""
        _, user = await self._authenticate_token(token)
        return user

    async def logout(self, token: str | None) -> None:
        """Revoke a token for the rest of its lifetime.

        Logging out with an already revoked token is not an error. The
        subject is not looked up, so a deleted user's token is still revoked.
        """
        if not token:
            raise UnauthenticatedError("Missing bearer token")
        try:
            claims = self.codec.decode(token)
        except TokenError as e:
            raise UnauthenticatedError(str(e)) from e

        newly_revoked = await self.revocations.revoke(claims.unique_id, claims.expires_at)
        await self.db.commit()
        if newly_revoked:
            logger.info(
                "User logged out", extra={"user_id": claims.subject, "jti": claims.unique_id}
            )

    async def refresh(self, token: str | None) -> AuthResult:
        """Exchange a valid token for a new one, revoking the old token.

        The old token is consumed by an atomic check-and-set, so two
        concurrent refreshes of the same token cannot both succeed.
        """
        claims, user = await self._authenticate_token(token)
        minted = self.codec.mint(user.id)

        if not await self.revocations.revoke(claims.unique_id, claims.expires_at):
            await self.db.rollback()
            raise UnauthenticatedError("Token has been revoked")
        await self.db.commit()

        logger.info(
            "Token refreshed",
            extra={
                "user_id": str(user.id),
                "jti": minted.claims.unique_id,
                "revoked_jti": claims.unique_id,
            },
        )
        return AuthResult(user=user, token=minted)
