"""API services package."""

from api.services.auth_service import AuthService
from api.services.database import close_db, get_db
from api.services.oauth_state_service import OAuthStateService
from api.services.user_service import UserService

__all__ = [
    "AuthService",
    "OAuthStateService",
    "UserService",
    "close_db",
    "get_db",
]
