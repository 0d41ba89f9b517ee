"""User account model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from authgate.models.base import BaseModel


class User(BaseModel):
    """A registered user.

    Emails are stored normalized (trimmed, lower-cased); the unique
    constraint on the column is what makes concurrent registrations with
    the same address safe.
    """

    __tablename__ = "users"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    def __repr__(self) -> str:
        return f"<User {self.email}>"
