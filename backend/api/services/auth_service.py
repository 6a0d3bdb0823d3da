"""Auth service - credential login and session revocation."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.passwords import verify_password
from api.auth.tokens import TokenService
from api.errors import InvalidCredentialsError
from api.models import User
from api.services.user_service import UserService

logger = logging.getLogger(__name__)


class AuthService:
    """Issues tokens for valid credentials and revokes sessions."""

    def __init__(self, db: AsyncSession, tokens: TokenService):
        self.users = UserService(db)
        self.tokens = tokens

    async def login(
        self,
        password: str,
        username: str | None = None,
        email: str | None = None,
    ) -> str:
        """Authenticate by username or email and return an access token.

        The same error is raised for unknown users, wrong passwords and
        password-less (Google-only) accounts.

        Raises:
            InvalidCredentialsError: Authentication failed
        """
        user = None
        if username:
            user = await self.users.get_by_username(username)
        if user is None and email:
            user = await self.users.get_by_email(email)

        if user is None or not verify_password(user.password_hash, password):
            logger.info(f"Failed login for {username or email}")
            raise InvalidCredentialsError()

        return self.generate_token(user)

    def generate_token(self, user: User) -> str:
        """Issue an access token bound to the user's current token version."""
        return self.tokens.create_token(user.id, user.token_version or 0)

    async def invalidate_session(self, user: User) -> None:
        """Log the user out everywhere."""
        await self.users.revoke_tokens(user)
