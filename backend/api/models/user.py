"""User model.

Accounts are created either through email/password signup or on first
Google sign-in. Google-only accounts have no password hash.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from api.models.base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Registered user.

    Attributes:
        id: Integer primary key
        username: Unique display/login name
        email: Unique email address
        password_hash: Argon2 hash, None for Google-only accounts
        google_id: Google account ID once linked
        token_version: Bumped on logout to revoke outstanding tokens
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
    )
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    password_hash: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )
    google_id: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=True,
        comment="Google account ID (userinfo 'id')",
    )
    token_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        server_default="0",
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, username={self.username})>"
