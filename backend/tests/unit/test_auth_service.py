"""Unit tests for auth service."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from api.auth.tokens import TokenService
from api.errors import InvalidCredentialsError
from api.services.auth_service import AuthService


@pytest.fixture
def tokens():
    return TokenService("auth-service-test-secret-long-enough")


@pytest.fixture
def auth_service(mock_db, tokens):
    service = AuthService(mock_db, tokens)
    service.users = MagicMock()
    service.users.get_by_username = AsyncMock(return_value=None)
    service.users.get_by_email = AsyncMock(return_value=None)
    service.users.get_by_id = AsyncMock(return_value=None)
    service.users.revoke_tokens = AsyncMock()
    return service


class TestLogin:
    """Tests for AuthService.login()."""

    @pytest.mark.asyncio

    async def test_login_by_username(self, auth_service, tokens, sample_user):
        auth_service.users.get_by_username.return_value = sample_user

        token = await auth_service.login(password="correct-horse", username="testuser")

        payload = tokens.decode(token)
        assert payload["user_id"] == sample_user.id
        assert payload["ver"] == 0

    @pytest.mark.asyncio

    async def test_login_by_email(self, auth_service, tokens, sample_user):
        auth_service.users.get_by_email.return_value = sample_user

        token = await auth_service.login(password="correct-horse", email="test@example.com")

        assert tokens.decode(token)["sub"] == "1"
        auth_service.users.get_by_username.assert_not_awaited()

    @pytest.mark.asyncio

    async def test_username_field_holding_email(self, auth_service, sample_user):
        """Login form sends whatever the user typed as username; fall back to email."""
        auth_service.users.get_by_email.return_value = sample_user

        token = await auth_service.login(
            password="correct-horse", username="test@example.com", email="test@example.com"
        )

        assert token

    @pytest.mark.asyncio

    async def test_wrong_password(self, auth_service, sample_user):
        auth_service.users.get_by_username.return_value = sample_user

        with pytest.raises(InvalidCredentialsError) as exc_info:
            await auth_service.login(password="wrong-password", username="testuser")
        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.asyncio

    async def test_unknown_user(self, auth_service):
        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(password="whatever1", username="ghost")

    @pytest.mark.asyncio

    async def test_google_only_account(self, auth_service, sample_user):
        sample_user.password_hash = None
        auth_service.users.get_by_username.return_value = sample_user

        with pytest.raises(InvalidCredentialsError):
            await auth_service.login(password="correct-horse", username="testuser")


class TestSessions:
    """Tests for token issue and session revocation."""

    def test_generate_token_carries_version(self, auth_service, tokens, sample_user):
        sample_user.token_version = 4

        assert tokens.decode(auth_service.generate_token(sample_user))["ver"] == 4

    @pytest.mark.asyncio

    async def test_invalidate_session(self, auth_service, sample_user):
        await auth_service.invalidate_session(sample_user)

        auth_service.users.revoke_tokens.assert_awaited_once_with(sample_user)
