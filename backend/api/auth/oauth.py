"""Google OAuth 2.0 client (authorization code flow with PKCE)."""

import base64
import hashlib
import logging
import secrets
from functools import lru_cache
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel, ValidationError

from api.errors import OAuthError, OAuthNotConfiguredError
from common.config import settings

logger = logging.getLogger(__name__)

GOOGLE_SCOPES = ("openid", "email", "profile")


class GoogleUserInfo(BaseModel):
    """Subset of the Google userinfo response used to provision accounts."""

    id: str
    email: str
    verified_email: bool = False
    name: str | None = None
    given_name: str | None = None
    picture: str | None = None


def generate_pkce_pair() -> tuple[str, str]:
    """Create a PKCE (verifier, S256 challenge) pair.

    The verifier is 86 URL-safe characters, inside the 43-128 range
    RFC 7636 allows.
    """
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


def generate_state() -> str:
    """Create an unguessable OAuth state value."""
    return secrets.token_urlsafe(32)


class GoogleOAuthClient:
    """Talks to Google's authorization, token and userinfo endpoints."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_url: str,
        auth_url: str = "https://accounts.google.com/o/oauth2/v2/auth",
        token_url: str = "https://oauth2.googleapis.com/token",
        userinfo_url: str = "https://www.googleapis.com/oauth2/v2/userinfo",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_url = redirect_url
        self.auth_url = auth_url
        self.token_url = token_url
        self.userinfo_url = userinfo_url
        self._http_client = http_client
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def require_configured(self) -> None:
        if not self.is_configured:
            raise OAuthNotConfiguredError()

    def authorization_url(self, state: str, code_challenge: str) -> str:
        """Build the URL the browser is sent to for Google consent."""
        self.require_configured()
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_url,
            "response_type": "code",
            "scope": " ".join(GOOGLE_SCOPES),
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        return f"{self.auth_url}?{urlencode(params)}"

    async def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            if self._http_client is not None:
                response = await self._http_client.request(method, url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.request(method, url, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(f"Google {url} returned {e.response.status_code}")
            raise OAuthError(f"Google returned HTTP {e.response.status_code}") from e
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Google request to {url} failed: {e}")
            raise OAuthError(str(e) or e.__class__.__name__) from e

    async def exchange_code(self, code: str, code_verifier: str) -> str:
        """Exchange an authorization code for an access token.

        Raises:
            OAuthError: If Google rejects the code or returns no token
        """
        self.require_configured()
        payload = await self._request(
            "POST",
            self.token_url,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.redirect_url,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "code_verifier": code_verifier,
            },
            headers={"Accept": "application/json"},
        )
        access_token = payload.get("access_token")
        if not access_token:
            raise OAuthError("No access token in token response")
        return access_token

    async def fetch_user_info(self, access_token: str) -> GoogleUserInfo:
        """Fetch the signed-in user's Google profile.

        Raises:
            OAuthError: If the request fails or the profile lacks id/email
        """
        payload = await self._request(
            "GET",
            self.userinfo_url,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        try:
            return GoogleUserInfo.model_validate(payload)
        except ValidationError as e:
            raise OAuthError("Incomplete Google profile") from e


@lru_cache
def get_google_oauth_client() -> GoogleOAuthClient:
    """Get cached Google OAuth client configured from settings."""
    return GoogleOAuthClient(
        client_id=settings.resolved_google_client_id,
        client_secret=settings.resolved_google_client_secret,
        redirect_url=settings.google_redirect_url,
        auth_url=settings.google_auth_url,
        token_url=settings.google_token_url,
        userinfo_url=settings.google_userinfo_url,
    )
