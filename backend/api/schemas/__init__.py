"""API schemas package."""

from api.schemas.auth import (
    GoogleCallbackRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    OAuthUrlResponse,
)
from api.schemas.user import UserCreate, UserResponse

__all__ = [
    "GoogleCallbackRequest",
    "LoginRequest",
    "LoginResponse",
    "MeResponse",
    "OAuthUrlResponse",
    "UserCreate",
    "UserResponse",
]
