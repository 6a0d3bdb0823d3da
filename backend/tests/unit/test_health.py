"""Tests for the health endpoint and framework-level error bodies."""

from fastapi.testclient import TestClient

from api.version import __version__
from common.config import settings


class TestHealth:
    def test_reports_healthy(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_reports_version_and_environment(self, client: TestClient):
        data = client.get("/health").json()

        assert data["version"] == __version__
        assert data["environment"] == settings.environment

    def test_needs_no_credentials(self, client: TestClient):
        response = client.get("/health", headers={"Authorization": "Bearer garbage"})

        assert response.status_code == 200


class TestFrameworkErrors:
    def test_unknown_route_uses_error_body(self, client: TestClient):
        response = client.get("/api/nope")

        assert response.status_code == 404
        assert response.json() == {"error": "Not Found"}

    def test_wrong_method_uses_error_body(self, client: TestClient):
        response = client.put("/health")

        assert response.status_code == 405
        assert response.json() == {"error": "Method Not Allowed"}
