"""Signed, expiring bearer tokens (JWT via PyJWT)."""

import logging
import secrets
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import InvalidSignatureError, PyJWTError

from authgate.core.config import Settings

logger = logging.getLogger(__name__)

_REQUIRED_CLAIMS = ["sub", "iat", "exp", "jti"]

# Time-based claims are checked against the codec clock, not by PyJWT
_DECODE_OPTIONS = {
    "require": _REQUIRED_CLAIMS,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
}


class TokenError(Exception):
    """Base error for tokens that cannot be honoured."""

    pass


class MalformedTokenError(TokenError):
    """Token is not a well-formed JWT or lacks required claims."""

    pass


class SignatureInvalidError(TokenError):
    """Token signature does not match its header and payload."""

    pass


class TokenExpiredError(TokenError):
    """Token is past its expiry time."""

    pass


class TokenMintError(Exception):
    """Signing a new token failed (server-side problem)."""

    pass


@dataclass(frozen=True)
class TokenConfig:
    """Signing key, algorithm and lifetime for a TokenCodec."""

    secret_key: str
    algorithm: str = "HS256"
    ttl_minutes: int = 60
    issuer: str = "authgate"

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenConfig":
        return cls(
            secret_key=settings.effective_jwt_secret_key,
            algorithm=settings.jwt_algorithm,
            ttl_minutes=settings.jwt_ttl_minutes,
            issuer=settings.jwt_issuer,
        )


@dataclass(frozen=True)
class TokenClaims:
    """Decoded token contents."""

    subject: str
    issued_at: datetime
    expires_at: datetime
    unique_id: str


@dataclass(frozen=True)
class MintedToken:
    """An encoded token together with the claims it carries."""

    token: str
    claims: TokenClaims


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenCodec:
    """Mints and decodes bearer tokens bound to a user id.

    Expiry is enforced at decode time against the current clock, so an
    expired token is rejected without consulting any revocation state.
    """

    def __init__(self, config: TokenConfig, clock: Callable[[], datetime] | None = None):
        if not config.secret_key:
            raise ValueError("TokenCodec requires a non-empty secret key")
        self.config = config
        self._clock = clock or _utcnow

    @property
    def ttl_seconds(self) -> int:
        """Configured token lifetime in seconds."""
        return self.config.ttl_minutes * 60

    def mint(self, user_id: Any, ttl_seconds: int | None = None) -> MintedToken:
        """Sign a new token for ``user_id``.

        Raises TokenMintError if the token cannot be signed.
        """
        # JWT timestamps have second precision
        issued_at = self._clock().astimezone(UTC).replace(microsecond=0)
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        expires_at = issued_at + timedelta(seconds=ttl)
        claims = TokenClaims(
            subject=str(user_id),
            issued_at=issued_at,
            expires_at=expires_at,
            unique_id=secrets.token_hex(16),
        )
        payload = {
            "sub": claims.subject,
            "iat": issued_at,
            "nbf": issued_at,
            "exp": expires_at,
            "jti": claims.unique_id,
            "iss": self.config.issuer,
        }
        try:
            token = jwt.encode(payload, self.config.secret_key, algorithm=self.config.algorithm)
        except (PyJWTError, NotImplementedError, TypeError, ValueError) as e:
            logger.exception(f"Failed to sign token for subject {claims.subject}")
            raise TokenMintError(f"Could not sign token: {e}") from e
        # PyJWT 2.x returns str; older type stubs may declare bytes
        return MintedToken(token=str(token), claims=claims)

    def decode(self, token: str) -> TokenClaims:
        """Verify signature, required claims and validity window of ``token``.

        ``exp`` and ``nbf`` are compared with the codec clock, so a codec
        built with a fixed clock judges expiry by that clock.
        """
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self.config.secret_key,
                algorithms=[self.config.algorithm],
                issuer=self.config.issuer,
                options=_DECODE_OPTIONS,
            )
        except InvalidSignatureError as e:
            raise SignatureInvalidError("Token signature is invalid") from e
        except PyJWTError as e:
            raise MalformedTokenError(f"Malformed token: {e}") from e

        try:
            claims = TokenClaims(
                subject=str(payload["sub"]),
                issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=UTC),
                expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
                unique_id=str(payload["jti"]),
            )
            not_before = (
                datetime.fromtimestamp(int(payload["nbf"]), tz=UTC) if "nbf" in payload else None
            )
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise MalformedTokenError(f"Malformed token claims: {e}") from e

        now = self._clock().astimezone(UTC)
        if now >= claims.expires_at:
            raise TokenExpiredError("Token has expired")
        if not_before is not None and now < not_before:
            raise MalformedTokenError("Token is not yet valid (nbf)")
        return claims
