"""JWT issue and validation for Queso access tokens."""

from datetime import UTC, datetime, timedelta
from functools import lru_cache

import jwt

from api.errors import InvalidTokenError, TokenExpiredError
from common.config import settings


class TokenService:
    """Symmetric (HS256 by default) JWT issuer/validator.

    Tokens carry the user id twice (``sub`` as a string for JWT
    consumers, ``user_id`` as an int) and the user's ``token_version``
    as ``ver`` so a logout can revoke every earlier token.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", expiration_hours: int = 24):
        self.secret = secret
        self.algorithm = algorithm
        self.expiration = timedelta(hours=expiration_hours)

    def create_token(self, user_id: int, token_version: int = 0) -> str:
        """Issue a signed access token for a user."""
        now = datetime.now(UTC)
        claims = {
            "sub": str(user_id),
            "user_id": user_id,
            "ver": token_version,
            "iat": now,
            "nbf": now,
            "exp": now + self.expiration,
        }
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)

    def decode(self, token: str) -> dict:
        """Decode and validate a token.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the signature or claims are invalid
        """
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpiredError() from e
        except jwt.PyJWTError as e:
            raise InvalidTokenError(f"Token validation failed: {e}") from e


@lru_cache
def get_token_service() -> TokenService:
    """Get cached token service configured from settings."""
    return TokenService(
        secret=settings.resolved_jwt_secret,
        algorithm=settings.jwt_algorithm,
        expiration_hours=settings.jwt_expiration_hours,
    )
