"""Unit tests for users router."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from api.auth.dependencies import get_current_user
from api.errors import EmailExistsError, UsernameExistsError
from api.main import app
from api.models import User
from api.routers.users import get_user_service


@pytest.fixture
def mock_service():
    service = MagicMock()
    service.create_user = AsyncMock()
    service.list_users = AsyncMock(return_value=[])
    service.get_by_id = AsyncMock(return_value=None)
    service.delete_user = AsyncMock(return_value=True)
    return service


@pytest.fixture
def client(mock_service, sample_user):
    """Create a test client with the user service and auth mocked."""
    app.dependency_overrides[get_user_service] = lambda: mock_service
    app.dependency_overrides[get_current_user] = lambda: sample_user

    yield TestClient(app)

    app.dependency_overrides.clear()


def make_user(user_id: int, username: str) -> User:
    user = User(id=user_id, username=username, email=f"{username}@example.com", token_version=0)
    user.created_at = datetime.now(UTC)
    user.updated_at = datetime.now(UTC)
    return user


class TestCreateUser:
    """Tests for POST /api/users."""

    def test_create_user(self, client, mock_service):
        mock_service.create_user.return_value = make_user(1, "queso")

        response = client.post(
            "/api/users",
            json={"username": "queso", "email": "Queso@Example.com", "password": "password123"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 1
        assert data["username"] == "queso"
        assert "created_at" in data
        assert "password" not in data
        assert "password_hash" not in data
        mock_service.create_user.assert_awaited_once_with(
            username="queso", email="queso@example.com", password="password123"
        )

    def test_duplicate_username(self, client, mock_service):
        mock_service.create_user.side_effect = UsernameExistsError()

        response = client.post(
            "/api/users",
            json={"username": "queso", "email": "q@example.com", "password": "password123"},
        )

        assert response.status_code == 409
        assert response.json() == {"error": "Username already exists"}

    def test_duplicate_email(self, client, mock_service):
        mock_service.create_user.side_effect = EmailExistsError()

        response = client.post(
            "/api/users",
            json={"username": "queso", "email": "q@example.com", "password": "password123"},
        )

        assert response.status_code == 409
        assert response.json() == {"error": "Email already exists"}

    @pytest.mark.parametrize(
        "payload",
        [
            {"username": "ab", "email": "a@example.com", "password": "password123"},
            {"username": "bad name!", "email": "a@example.com", "password": "password123"},
            {"username": "queso", "email": "not-an-email", "password": "password123"},
            {"username": "queso", "email": "a@example.com", "password": "short"},
            {"username": "queso", "email": "a@example.com"},
        ],
    )
    def test_validation_errors(self, client, mock_service, payload):
        response = client.post("/api/users", json=payload)

        assert response.status_code == 422
        assert "error" in response.json()
        mock_service.create_user.assert_not_awaited()


class TestReadUsers:
    """Tests for GET /api/users and GET /api/users/{id}."""

    def test_list_users(self, client, mock_service):
        mock_service.list_users.return_value = [make_user(1, "alpha"), make_user(2, "beta")]

        response = client.get("/api/users")

        assert response.status_code == 200
        assert [u["username"] for u in response.json()] == ["alpha", "beta"]

    def test_get_user(self, client, mock_service):
        mock_service.get_by_id.return_value = make_user(3, "gamma")

        response = client.get("/api/users/3")

        assert response.status_code == 200
        assert response.json()["username"] == "gamma"

    def test_get_user_not_found(self, client):
        response = client.get("/api/users/404")

        assert response.status_code == 404
        assert response.json() == {"error": "User not found"}

    def test_non_integer_id(self, client):
        response = client.get("/api/users/abc")

        assert response.status_code == 422


class TestDeleteUser:
    """Tests for DELETE /api/users/{id}."""

    def test_delete_self(self, client, mock_service, sample_user):
        response = client.delete(f"/api/users/{sample_user.id}")

        assert response.status_code == 204
        mock_service.delete_user.assert_awaited_once_with(sample_user.id)

    def test_delete_other_user_forbidden(self, client, mock_service):
        response = client.delete("/api/users/2")

        assert response.status_code == 403
        mock_service.delete_user.assert_not_awaited()

    def test_delete_missing(self, client, mock_service, sample_user):
        mock_service.delete_user.return_value = False

        response = client.delete(f"/api/users/{sample_user.id}")

        assert response.status_code == 404

    def test_delete_requires_token(self, mock_service):
        app.dependency_overrides[get_user_service] = lambda: mock_service
        try:
            response = TestClient(app).delete("/api/users/1")
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 401
        assert response.json() == {"error": "Missing credentials"}
        assert response.headers["www-authenticate"] == "Bearer"
