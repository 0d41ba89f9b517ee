"""Unit tests for the token revocation registry."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from authgate.services.revocation import RevocationRegistry

pytestmark = pytest.mark.asyncio


class TestRevoke:
    """Tests for RevocationRegistry.revoke() / is_revoked()."""

    async def test_revoke_then_is_revoked(self, db_session):
        registry = RevocationRegistry(db_session)
        expires_at = datetime.now(UTC) + timedelta(hours=1)

        assert await registry.is_revoked("jti-1") is False
        assert await registry.revoke("jti-1", expires_at) is True
        assert await registry.is_revoked("jti-1") is True

    async def test_revoke_is_check_and_set(self, db_session):
        """Only the first revocation of an id reports success."""
        registry = RevocationRegistry(db_session)
        expires_at = datetime.now(UTC) + timedelta(hours=1)

        assert await registry.revoke("jti-1", expires_at) is True
        assert await registry.revoke("jti-1", expires_at) is False
        assert await registry.is_revoked("jti-1") is True

    async def test_other_ids_unaffected(self, db_session):
        registry = RevocationRegistry(db_session)
        await registry.revoke("jti-1", datetime.now(UTC) + timedelta(hours=1))
        assert await registry.is_revoked("jti-2") is False

    async def test_unsupported_dialect_rejected(self):
        session = MagicMock()
        session.get_bind.return_value.dialect.name = "mysql"

        with pytest.raises(RuntimeError, match="mysql"):
            await RevocationRegistry(session).revoke("jti-1", datetime.now(UTC))

        session.execute.assert_not_called()


class TestPurgeExpired:
    """Tests for RevocationRegistry.purge_expired()."""

    async def test_purge_removes_only_expired(self, db_session):
        registry = RevocationRegistry(db_session)
        now = datetime.now(UTC)
        await registry.revoke("old", now - timedelta(minutes=5))
        await registry.revoke("live", now + timedelta(minutes=5))

        removed = await registry.purge_expired(now)

        assert removed == 1
        assert await registry.is_revoked("old") is False
        assert await registry.is_revoked("live") is True

    async def test_purge_with_nothing_expired(self, db_session):
        registry = RevocationRegistry(db_session)
        await registry.revoke("live", datetime.now(UTC) + timedelta(minutes=5))
        assert await registry.purge_expired() == 0
