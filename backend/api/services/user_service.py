"""User service - account creation, lookup and Google account linking."""

import logging
import re

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.oauth import GoogleUserInfo
from api.auth.passwords import hash_password
from api.errors import EmailExistsError, OAuthError, UsernameExistsError
from api.models import User

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 50


class UserService:
    """Service for managing user records."""

    def __init__(self, db: AsyncSession):
        """Initialize with database session.

        Args:
            db: Async SQLAlchemy session
        """
        self.db = db

    async def create_user(
        self,
        username: str,
        email: str,
        password: str | None = None,
        google_id: str | None = None,
    ) -> User:
        """Create a user after checking username and email are free.

        Args:
            username: Requested username
            email: Email address (stored lowercased)
            password: Plaintext password, hashed before storage
            google_id: Google account ID for OAuth-provisioned accounts

        Returns:
            The created User

        Raises:
            UsernameExistsError: Username is taken
            EmailExistsError: Email is already registered
        """
        email = email.strip().lower()

        if await self.get_by_username(username) is not None:
            raise UsernameExistsError()
        if await self.get_by_email(email) is not None:
            raise EmailExistsError()

        user = User(
            username=username,
            email=email,
            password_hash=hash_password(password) if password else None,
            google_id=google_id,
            token_version=0,
        )
        self.db.add(user)
        await self._flush_new_user()
        await self.db.refresh(user)
        logger.info(f"Created user {user.id} ({username})")
        return user

    async def list_users(self, limit: int = 100, offset: int = 0) -> list[User]:
        """List users ordered by id."""
        query = select(User).order_by(User.id).limit(limit).offset(offset)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_by_id(self, user_id: int) -> User | None:
        """Get user by primary key."""
        query = select(User).where(User.id == user_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        """Get user by exact username."""
        query = select(User).where(User.username == username)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email (case-insensitive)."""
        query = select(User).where(User.email == email.strip().lower())
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_google_id(self, google_id: str) -> User | None:
        """Get user by linked Google account ID."""
        query = select(User).where(User.google_id == google_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def delete_user(self, user_id: int) -> bool:
        """Delete a user.

        Returns:
            True if a user was deleted, False if none existed
        """
        user = await self.get_by_id(user_id)
        if user is None:
            return False

        await self.db.delete(user)
        await self.db.flush()
        logger.info(f"Deleted user {user_id}")
        return True

    async def get_or_create_from_google(self, info: GoogleUserInfo) -> User:
        """Resolve the local account for a Google profile.

        Lookup order: linked google_id, then an existing account with the
        same email (which gets linked), then a new account whose username
        is derived from the email.

        Raises:
            OAuthError: The email matches an account but Google has not
                verified it
        """
        user = await self.get_by_google_id(info.id)
        if user is not None:
            return user

        user = await self.get_by_email(info.email)
        if user is not None:
            if not info.verified_email:
                logger.warning(f"Refused to link unverified Google email to user {user.id}")
                raise OAuthError("Google email is not verified")
            user.google_id = info.id
            await self.db.flush()
            logger.info(f"Linked Google account to user {user.id}")
            return user

        username = await self._available_username(info.email)
        return await self.create_user(username=username, email=info.email, google_id=info.id)

    async def revoke_tokens(self, user: User) -> None:
        """Invalidate every token issued to the user so far."""
        user.token_version = (user.token_version or 0) + 1
        await self.db.flush()
        logger.info(f"Revoked tokens for user {user.id}")

    async def _available_username(self, email: str) -> str:
        """Derive a free username from an email local part."""
        base = re.sub(r"[^A-Za-z0-9_.-]", "", email.split("@")[0]) or "user"
        base = base[:USERNAME_MAX_LENGTH]
        if len(base) < 3:
            base = f"{base}_user"

        candidate = base
        suffix = 1
        while await self.get_by_username(candidate) is not None:
            suffix += 1
            tail = str(suffix)
            candidate = f"{base[: USERNAME_MAX_LENGTH - len(tail)]}{tail}"
        return candidate

    async def _flush_new_user(self) -> None:
        """Flush a pending insert, mapping unique violations to 409 errors.

        The existence checks in create_user cannot see a concurrent insert
        that has not committed yet; the unique indexes still catch it.
        """
        try:
            await self.db.flush()
        except IntegrityError as e:
            detail = str(e.orig).lower()
            if "username" in detail:
                raise UsernameExistsError() from e
            if "email" in detail:
                raise EmailExistsError() from e
            raise
