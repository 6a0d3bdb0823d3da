"""FastAPI dependencies for authentication."""

import logging

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.models import AuthUser
from api.auth.tokens import TokenService, get_token_service
from api.errors import MissingCredentialsError, SessionRevokedError
from api.models import User
from api.services.database import get_db
from api.services.user_service import UserService

logger = logging.getLogger(__name__)

# HTTP Bearer token scheme for OpenAPI docs
bearer_scheme = HTTPBearer(auto_error=False)


async def get_auth_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> AuthUser:
    """Validate the bearer token and return its claims.

    Raises:
        MissingCredentialsError: No Authorization header
        TokenExpiredError: Token has expired
        InvalidTokenError: Token failed validation
    """
    if credentials is None:
        raise MissingCredentialsError()

    payload = tokens.decode(credentials.credentials)
    return AuthUser.from_token_payload(payload)


async def get_current_user(
    auth_user: AuthUser = Depends(get_auth_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """FastAPI dependency to get the current authenticated user record.

    Rejects tokens whose version predates the user's last logout and
    tokens for users that no longer exist.

    Raises:
        SessionRevokedError: Token is stale or the user was deleted
    """
    user = await UserService(db).get_by_id(auth_user.user_id)
    if user is None or user.token_version != auth_user.token_version:
        logger.info(f"Rejected revoked token for user {auth_user.user_id}")
        raise SessionRevokedError()
    return user
