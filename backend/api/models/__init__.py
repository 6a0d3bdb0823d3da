"""SQLAlchemy models for Queso.

This module exports all database models and the declarative base.
"""

from api.models.base import Base
from api.models.oauth_state import OAuthState
from api.models.user import User

__all__ = ["Base", "OAuthState", "User"]
