"""Unit tests for user service."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from api.auth.oauth import GoogleUserInfo
from api.auth.passwords import verify_password
from api.errors import EmailExistsError, OAuthError, UsernameExistsError
from api.models import User
from api.services.user_service import UserService


def scalar_result(value):
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def user_service(mock_db):
    """Create a UserService with mock database."""
    return UserService(mock_db)


async def assign_identity(user):
    user.id = 99
    user.created_at = datetime.now(UTC)
    user.updated_at = datetime.now(UTC)


class TestCreateUser:
    """Tests for UserService.create_user()."""

    @pytest.mark.asyncio

    async def test_creates_user_with_hashed_password(self, user_service, mock_db):
        mock_db.execute.return_value = scalar_result(None)
        mock_db.refresh = AsyncMock(side_effect=assign_identity)

        user = await user_service.create_user("newuser", "New@Example.com", "password123")

        mock_db.add.assert_called_once()
        assert user.id == 99
        assert user.username == "newuser"
        assert user.email == "new@example.com"
        assert user.password_hash != "password123"
        assert verify_password(user.password_hash, "password123")
        assert user.token_version == 0

    @pytest.mark.asyncio

    async def test_duplicate_username(self, user_service, mock_db, sample_user):
        mock_db.execute.return_value = scalar_result(sample_user)

        with pytest.raises(UsernameExistsError) as exc_info:
            await user_service.create_user("testuser", "other@example.com", "password123")

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Username already exists"
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio

    async def test_duplicate_email(self, user_service, mock_db, sample_user):
        # Username lookup misses, email lookup hits
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(sample_user)]

        with pytest.raises(EmailExistsError) as exc_info:
            await user_service.create_user("another", "test@example.com", "password123")

        assert exc_info.value.status_code == 409
        assert exc_info.value.message == "Email already exists"
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio

    async def test_google_account_has_no_password(self, user_service, mock_db):
        mock_db.execute.return_value = scalar_result(None)

        user = await user_service.create_user("guser", "g@example.com", google_id="g-1")

        assert user.password_hash is None
        assert user.google_id == "g-1"


class TestLookups:
    """Tests for user lookups and listing."""

    @pytest.mark.asyncio

    async def test_get_by_id(self, user_service, mock_db, sample_user):
        mock_db.execute.return_value = scalar_result(sample_user)

        assert await user_service.get_by_id(1) is sample_user

    @pytest.mark.asyncio

    async def test_get_by_id_missing(self, user_service, mock_db):
        mock_db.execute.return_value = scalar_result(None)

        assert await user_service.get_by_id(404) is None

    @pytest.mark.asyncio

    async def test_list_users(self, user_service, mock_db, sample_user):
        result = MagicMock()
        result.scalars.return_value.all.return_value = [sample_user]
        mock_db.execute.return_value = result

        assert await user_service.list_users() == [sample_user]


class TestDeleteUser:
    """Tests for UserService.delete_user()."""

    @pytest.mark.asyncio

    async def test_deletes_existing(self, user_service, mock_db, sample_user):
        mock_db.execute.return_value = scalar_result(sample_user)

        assert await user_service.delete_user(1) is True
        mock_db.delete.assert_awaited_once_with(sample_user)

    @pytest.mark.asyncio

    async def test_missing_user(self, user_service, mock_db):
        mock_db.execute.return_value = scalar_result(None)

        assert await user_service.delete_user(1) is False
        mock_db.delete.assert_not_awaited()


class TestRevokeTokens:
    """Tests for UserService.revoke_tokens()."""

    @pytest.mark.asyncio

    async def test_increments_version(self, user_service, mock_db, sample_user):
        await user_service.revoke_tokens(sample_user)
        await user_service.revoke_tokens(sample_user)

        assert sample_user.token_version == 2


class TestGetOrCreateFromGoogle:
    """Tests for UserService.get_or_create_from_google()."""

    @pytest.fixture
    def info(self):
        return GoogleUserInfo(id="g-123", email="Cheese.Fan@example.com", verified_email=True)

    @pytest.mark.asyncio

    async def test_returns_linked_user(self, user_service, mock_db, sample_user, info):
        sample_user.google_id = "g-123"
        mock_db.execute.return_value = scalar_result(sample_user)

        user = await user_service.get_or_create_from_google(info)

        assert user is sample_user
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio

    async def test_links_existing_email(self, user_service, mock_db, sample_user, info):
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(sample_user)]

        user = await user_service.get_or_create_from_google(info)

        assert user is sample_user
        assert user.google_id == "g-123"
        mock_db.add.assert_not_called()

    @pytest.mark.asyncio

    async def test_creates_user_from_email(self, user_service, mock_db, info):
        mock_db.execute.return_value = scalar_result(None)

        user = await user_service.get_or_create_from_google(info)

        mock_db.add.assert_called_once()
        assert user.username == "Cheese.Fan"
        assert user.email == "cheese.fan@example.com"
        assert user.google_id == "g-123"
        assert user.password_hash is None

    @pytest.mark.asyncio

    async def test_deduplicates_username(self, user_service, mock_db, sample_user, info):
        taken = User(id=5, username="Cheese.Fan", email="x@example.com")
        mock_db.execute.side_effect = [
            scalar_result(None),  # google_id
            scalar_result(None),  # email
            scalar_result(taken),  # "Cheese.Fan"
            scalar_result(taken),  # "Cheese.Fan2"
            scalar_result(None),  # "Cheese.Fan3"
            scalar_result(None),  # create_user: username check
            scalar_result(None),  # create_user: email check
        ]

        user = await user_service.get_or_create_from_google(info)

        assert user.username == "Cheese.Fan3"

    @pytest.mark.asyncio

    async def test_short_local_part_is_padded(self, user_service, mock_db):
        mock_db.execute.return_value = scalar_result(None)

        user = await user_service.get_or_create_from_google(
            GoogleUserInfo(id="g-9", email="jo@example.com")
        )

        assert len(user.username) >= 3

    @pytest.mark.asyncio

    async def test_unverified_email_is_not_linked(self, user_service, mock_db, sample_user):
        mock_db.execute.side_effect = [scalar_result(None), scalar_result(sample_user)]
        info = GoogleUserInfo(id="other-gid", email=sample_user.email, verified_email=False)

        with pytest.raises(OAuthError) as exc_info:
            await user_service.get_or_create_from_google(info)

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "OAuth error: Google email is not verified"
        assert sample_user.google_id is None
        mock_db.flush.assert_not_awaited()


def unique_violation(constraint: str) -> IntegrityError:
    return IntegrityError(
        "INSERT INTO users ...",
        {},
        Exception(f'duplicate key value violates unique constraint "{constraint}"'),
    )


class TestConcurrentSignup:
    """A racing insert that slips past the existence checks still gets a 409."""

    @pytest.mark.asyncio

    async def test_username_violation(self, user_service, mock_db):
        mock_db.execute.return_value = scalar_result(None)
        mock_db.flush.side_effect = unique_violation("ix_users_username")

        with pytest.raises(UsernameExistsError):
            await user_service.create_user("racer", "racer@example.com", "password123")

    @pytest.mark.asyncio

    async def test_email_violation(self, user_service, mock_db):
        mock_db.execute.return_value = scalar_result(None)
        mock_db.flush.side_effect = unique_violation("ix_users_email")

        with pytest.raises(EmailExistsError):
            await user_service.create_user("racer", "racer@example.com", "password123")

    @pytest.mark.asyncio

    async def test_other_violation_propagates(self, user_service, mock_db):
        mock_db.execute.return_value = scalar_result(None)
        mock_db.flush.side_effect = unique_violation("ix_users_google_id")

        with pytest.raises(IntegrityError):
            await user_service.create_user("racer", "racer@example.com", google_id="g-1")
