"""Auth router - password login, Google sign-in and session management.

Tokens are HS256 JWTs. Logout revokes every token the user holds by
bumping their token version.
"""

import logging
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.auth.dependencies import get_current_user
from api.auth.oauth import GoogleOAuthClient, generate_pkce_pair, get_google_oauth_client
from api.auth.tokens import TokenService, get_token_service
from api.models import User
from api.schemas.auth import (
    GoogleCallbackRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    OAuthUrlResponse,
)
from api.services.auth_service import AuthService
from api.services.database import get_db
from api.services.oauth_state_service import OAuthStateService
from api.services.user_service import UserService
from common.config import settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth")


def get_auth_service(
    db: AsyncSession = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> AuthService:
    return AuthService(db, tokens)


def get_oauth_state_service(db: AsyncSession = Depends(get_db)) -> OAuthStateService:
    return OAuthStateService(db, ttl_seconds=settings.oauth_state_ttl_seconds)


def get_google_user_service(db: AsyncSession = Depends(get_db)) -> UserService:
    return UserService(db)


@router.post("/login", response_model=LoginResponse, summary="Log in with a password")
async def login(
    request: LoginRequest,
    service: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    token = await service.login(
        password=request.password,
        username=request.username,
        email=request.email,
    )
    return LoginResponse(token=token)


@router.get("/me", response_model=MeResponse, summary="Current user")
async def me(user: User = Depends(get_current_user)) -> MeResponse:
    return MeResponse.model_validate(user)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="Log out everywhere")
async def logout(
    user: User = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service),
) -> Response:
    await service.invalidate_session(user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/google/login", response_model=OAuthUrlResponse, summary="Start Google sign-in")
async def google_login(
    google: GoogleOAuthClient = Depends(get_google_oauth_client),
    states: OAuthStateService = Depends(get_oauth_state_service),
) -> OAuthUrlResponse:
    """Create a PKCE pair, persist the verifier and return Google's consent URL."""
    verifier, challenge = generate_pkce_pair()
    google.require_configured()
    state = await states.create(verifier)
    return OAuthUrlResponse(url=google.authorization_url(state, challenge))


async def _complete_google_sign_in(
    code: str,
    state: str,
    google: GoogleOAuthClient,
    states: OAuthStateService,
    users: UserService,
    auth: AuthService,
) -> str:
    verifier = await states.consume(state)
    access_token = await google.exchange_code(code, verifier)
    info = await google.fetch_user_info(access_token)
    user = await users.get_or_create_from_google(info)
    logger.info(f"Google sign-in for user {user.id}")
    return auth.generate_token(user)


@router.post(
    "/google/callback",
    response_model=LoginResponse,
    summary="Finish Google sign-in",
)
async def google_callback(
    request: GoogleCallbackRequest,
    google: GoogleOAuthClient = Depends(get_google_oauth_client),
    states: OAuthStateService = Depends(get_oauth_state_service),
    users: UserService = Depends(get_google_user_service),
    auth: AuthService = Depends(get_auth_service),
) -> LoginResponse:
    """Exchange the code posted by the frontend for an access token."""
    token = await _complete_google_sign_in(
        request.code, request.state, google, states, users, auth
    )
    return LoginResponse(token=token)


@router.get("/google/callback", summary="Finish Google sign-in (browser redirect)")
async def google_callback_redirect(
    code: str = Query(..., min_length=1),
    state: str = Query(..., min_length=1, max_length=128),
    google: GoogleOAuthClient = Depends(get_google_oauth_client),
    states: OAuthStateService = Depends(get_oauth_state_service),
    users: UserService = Depends(get_google_user_service),
    auth: AuthService = Depends(get_auth_service),
) -> RedirectResponse:
    """Finish the flow and send the browser to the frontend with the token."""
    token = await _complete_google_sign_in(code, state, google, states, users, auth)
    query = urlencode({"token": token})
    return RedirectResponse(
        url=f"{settings.frontend_url.rstrip('/')}/oauth/callback?{query}",
        status_code=status.HTTP_307_TEMPORARY_REDIRECT,
    )
