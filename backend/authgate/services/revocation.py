"""Database-backed registry of revoked token ids."""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.engine import CursorResult
from sqlalchemy.ext.asyncio import AsyncSession

from authgate.models.token_blacklist import TokenBlacklist

logger = logging.getLogger(__name__)

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class RevocationRegistry:
    """Records revoked token ids until the tokens would have expired.

    Revocation is a single check-and-set: ``revoke`` reports whether this
    call added the id, so two concurrent revocations of the same token
    cannot both succeed. Entries survive process restarts.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def revoke(self, unique_id: str, expires_at: datetime) -> bool:
        """Mark ``unique_id`` revoked. Returns False if it already was.

        Only PostgreSQL and SQLite sessions are supported.
        """
        expires_at = _as_utc(expires_at)
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Unsupported database dialect for revocation: {dialect}")

        stmt = (
            insert(TokenBlacklist)
            .values(jti=unique_id, expires_at=expires_at)
            .on_conflict_do_nothing(index_elements=[TokenBlacklist.jti])
        )
        result: CursorResult[Any] = await self.db.execute(stmt)  # type: ignore[assignment]
        added = result.rowcount == 1

        if added:
            logger.debug("Token revoked", extra={"jti": unique_id})
        return added

    async def is_revoked(self, unique_id: str) -> bool:
        """Check if a token id has been revoked."""
        result = await self.db.execute(
            select(TokenBlacklist.jti).where(TokenBlacklist.jti == unique_id)
        )
        return result.scalar_one_or_none() is not None

    async def purge_expired(self, now: datetime | None = None) -> int:
        """Remove entries whose tokens have expired. Returns count removed."""
        cutoff = _as_utc(now) if now is not None else datetime.now(tz=UTC)
        result: CursorResult[Any] = await self.db.execute(  # type: ignore[assignment]
            delete(TokenBlacklist).where(TokenBlacklist.expires_at < cutoff)
        )
        return result.rowcount
