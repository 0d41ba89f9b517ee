"""Persistent user records keyed by id and unique email."""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.models.user import User
from authgate.services.errors import DuplicateEmailError

logger = logging.getLogger(__name__)


class UserStore:
    """Service for user persistence.

    Callers pass emails already normalized; uniqueness is enforced by the
    database constraint on ``users.email``.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, name: str, email: str, password_hash: str) -> User:
        """Insert a new user. Raises DuplicateEmailError if the email is taken."""
        if await self.find_by_email(email) is not None:
            raise DuplicateEmailError(f"Email already registered: {email}")

        user = User(name=name, email=email, password_hash=password_hash)
        self.db.add(user)
        try:
            await self.db.flush()
        except IntegrityError as e:
            # A concurrent registration won the race for this email
            await self.db.rollback()
            logger.warning(f"Concurrent registration conflict for {email}")
            raise DuplicateEmailError(f"Email already registered: {email}") from e

        # Load server-generated timestamps
        await self.db.refresh(user)
        return user

    async def find_by_email(self, email: str) -> User | None:
        """Get user by (normalized) email."""
        result = await self.db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def find_by_id(self, user_id: UUID | str) -> User | None:
        """Get user by ID. A malformed id finds nothing."""
        if not isinstance(user_id, UUID):
            try:
                user_id = UUID(str(user_id))
            except ValueError:
                return None
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()
