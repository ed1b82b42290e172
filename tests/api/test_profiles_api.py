"""Tests for profile endpoints."""

from unittest.mock import AsyncMock
from uuid import uuid4

from fastapi.testclient import TestClient

from curator.api.dependencies import get_current_profile, get_profile_service
from curator.main import app
from curator.services.profile_service import ProfileService


class TestProfileEndpoints:

    def test_me(self, test_client: TestClient, make_profile) -> None:
        profile = make_profile("user", full_name="Una User")
        app.dependency_overrides[get_current_profile] = lambda: profile

        response = test_client.get("/api/profiles/me")

        assert response.status_code == 200
        assert response.json()["full_name"] == "Una User"
        assert response.json()["role"] == "user"

    def test_admin_cannot_demote_self(self, test_client: TestClient, make_profile) -> None:
        admin = make_profile("admin")
        app.dependency_overrides[get_current_profile] = lambda: admin
        service = ProfileService(AsyncMock())
        service.profile_repo = AsyncMock()
        app.dependency_overrides[get_profile_service] = lambda: service

        response = test_client.put(f"/api/profiles/{admin.id}/role", json={"role": "user"})

        assert response.status_code == 403
        service.profile_repo.update.assert_not_awaited()

    def test_role_update(self, test_client: TestClient, make_profile) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("admin")
        target = make_profile("curator")
        service = AsyncMock(spec=ProfileService)
        service.update_role.return_value = target
        app.dependency_overrides[get_profile_service] = lambda: service

        response = test_client.put(f"/api/profiles/{target.id}/role", json={"role": "curator"})

        assert response.status_code == 200
        assert response.json()["id"] == str(target.id)

    def test_invalid_role(self, test_client: TestClient, make_profile) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("admin")
        service = ProfileService(AsyncMock())
        service.profile_repo = AsyncMock()
        app.dependency_overrides[get_profile_service] = lambda: service

        response = test_client.put(f"/api/profiles/{uuid4()}/role", json={"role": "owner"})

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid role: owner"}
