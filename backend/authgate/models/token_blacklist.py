"""Revoked bearer tokens, kept until they would have expired anyway."""

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from authgate.core.database import Base


class TokenBlacklist(Base):
    """A revoked token identified by its JTI claim.

    Entries are created on logout and refresh and purged after expiry.
    """

    __tablename__ = "token_blacklist"

    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, index=True
    )

    def __repr__(self) -> str:
        return f"<TokenBlacklist {self.jti}>"
