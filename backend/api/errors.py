"""Domain errors and their HTTP rendering.

Every error the API raises on purpose derives from QuesoError and carries
its HTTP status. Responses use the body shape the frontend expects:
``{"error": "<message>"}``.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class QuesoError(Exception):
    """Base exception for expected API failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    message: str = "Bad request"

    def __init__(self, message: str | None = None):
        self.message = message or self.message
        super().__init__(self.message)


class UsernameExistsError(QuesoError):
    """Signup with a username that is already taken."""

    status_code = status.HTTP_409_CONFLICT
    message = "Username already exists"


class EmailExistsError(QuesoError):
    """Signup with an email that is already registered."""

    status_code = status.HTTP_409_CONFLICT
    message = "Email already exists"


class UserNotFoundError(QuesoError):
    """Requested user does not exist."""

    status_code = status.HTTP_404_NOT_FOUND
    message = "User not found"


class ForbiddenError(QuesoError):
    """Authenticated user may not act on this resource."""

    status_code = status.HTTP_403_FORBIDDEN
    message = "Forbidden"


class AuthError(QuesoError):
    """Base class for authentication failures (401)."""

    status_code = status.HTTP_401_UNAUTHORIZED
    message = "Unauthorized"


class InvalidCredentialsError(AuthError):
    """Wrong identifier/password combination."""

    message = "Invalid credentials"


class MissingCredentialsError(AuthError):
    """No bearer token on a protected route."""

    message = "Missing credentials"


class TokenExpiredError(AuthError):
    """Token has expired."""

    message = "Token has expired"


class InvalidTokenError(AuthError):
    """Token is invalid or malformed."""

    message = "Invalid token"


class SessionRevokedError(AuthError):
    """Token was issued before the user's last logout, or the user is gone."""

    message = "Session has been revoked"


class OAuthError(AuthError):
    """Google sign-in could not be completed."""

    message = "OAuth error"

    def __init__(self, message: str | None = None):
        super().__init__(f"OAuth error: {message}" if message else None)


class OAuthNotConfiguredError(QuesoError):
    """Google client credentials are missing."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    message = "Google sign-in is not configured"


def _error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


async def queso_error_handler(request: Request, exc: QuesoError) -> JSONResponse:
    """Render a QuesoError as ``{"error": ...}``."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return _error_response(exc.status_code, exc.message, headers)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render framework HTTP errors in the same body shape."""
    return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request validation failures with the first problem as the message."""
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": message, "details": jsonable_encoder(errors)},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error handlers to an application."""
    app.add_exception_handler(QuesoError, queso_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
