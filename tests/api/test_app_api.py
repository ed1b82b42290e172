"""Tests for sign out, health and root endpoints."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from curator.api.endpoints.auth import get_auth_service
from curator.core.auth import get_current_user_optional
from curator.main import app
from curator.schemas.auth import CurrentUser
from curator.services.auth_service import AuthService


class TestSignOut:

    def test_anonymous_redirects_to_login(self, test_client: TestClient) -> None:
        auth_service = AsyncMock(spec=AuthService)
        app.dependency_overrides[get_auth_service] = lambda: auth_service

        response = test_client.post("/api/auth/signout", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers["location"] == "http://localhost:3000/login"
        auth_service.sign_out.assert_not_awaited()

    def test_session_revoked(self, test_client: TestClient) -> None:
        user = CurrentUser(
            id="8a6e0804-2bd0-4672-b79d-d97027f9071a",
            email="cora@kbcurator.io",
            access_token="token-123",
        )
        app.dependency_overrides[get_current_user_optional] = lambda: user
        auth_service = AsyncMock(spec=AuthService)
        app.dependency_overrides[get_auth_service] = lambda: auth_service

        response = test_client.post("/api/auth/signout", follow_redirects=False)

        assert response.status_code == 303
        auth_service.sign_out.assert_awaited_once_with("token-123")

    def test_invalid_token_still_redirects(self, test_client: TestClient) -> None:
        app.dependency_overrides[get_auth_service] = lambda: AsyncMock(spec=AuthService)

        response = test_client.post(
            "/api/auth/signout",
            headers={"Authorization": "Bearer not-a-jwt"},
            follow_redirects=False,
        )

        assert response.status_code == 303


def test_health(test_client: TestClient) -> None:
    with patch("curator.api.endpoints.health.db_client") as db_client:
        db_client.health_check = AsyncMock(return_value={"status": "healthy"})

        response = test_client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_root(test_client: TestClient) -> None:
    response = test_client.get("/")

    assert response.status_code == 200
    assert response.json()["health"] == "/health"
