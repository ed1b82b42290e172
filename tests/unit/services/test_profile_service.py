from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from curator.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    SelfModificationError,
    ValidationError,
)
from curator.schemas.auth import CurrentUser
from curator.services.profile_service import ProfileService


@pytest.fixture
def profile_service() -> ProfileService:
    service = ProfileService(AsyncMock())
    service.profile_repo = AsyncMock()
    service.vector_repo = AsyncMock()
    return service


def identity(**metadata) -> CurrentUser:
    return CurrentUser(id=str(uuid4()), email="new.user@kbcurator.io", user_metadata=metadata)


class TestFirstSight:

    @pytest.mark.asyncio
    async def test_existing_profile_returned(self, profile_service, make_profile):
        existing = make_profile("curator")
        profile_service.profile_repo.get_by_id.return_value = existing

        profile = await profile_service.create_profile_on_first_sight(identity())

        assert profile is existing
        profile_service.profile_repo.create_if_absent.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "metadata, expected_name",
        [
            ({"full_name": "Ada Lovelace", "name": "ada"}, "Ada Lovelace"),
            ({"name": "ada"}, "ada"),
            ({}, ""),
        ],
    )
    async def test_new_profile_created_as_user(
        self, profile_service, make_profile, metadata, expected_name
    ):
        user = identity(**metadata)
        profile_service.profile_repo.get_by_id.return_value = None
        profile_service.profile_repo.create_if_absent.return_value = make_profile("user")

        await profile_service.create_profile_on_first_sight(user)

        kwargs = profile_service.profile_repo.create_if_absent.await_args.kwargs
        assert str(kwargs["user_id"]) == user.id
        assert kwargs["email"] == user.email
        assert kwargs["full_name"] == expected_name
        profile_service.session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_is_swallowed(self, profile_service):
        profile_service.profile_repo.get_by_id.return_value = None
        profile_service.profile_repo.create_if_absent.side_effect = OperationalError(
            "INSERT", {}, Exception("connection reset")
        )

        assert await profile_service.create_profile_on_first_sight(identity()) is None
        profile_service.session.rollback.assert_awaited_once()


class TestRoleChanges:

    @pytest.mark.asyncio
    async def test_admin_promotes_user(self, profile_service, make_profile):
        admin = make_profile("admin")
        target_id = uuid4()
        profile_service.profile_repo.update.return_value = make_profile("curator", id=target_id)

        updated = await profile_service.update_role(admin, target_id, "curator")

        assert updated.role == "curator"
        profile_service.profile_repo.update.assert_awaited_once_with(target_id, role="curator")
        profile_service.session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    @pytest.mark.parametrize("role, active", [("curator", True), ("user", True), ("admin", False)])
    async def test_non_admin_refused(self, profile_service, make_profile, role, active):
        with pytest.raises(AuthorizationError):
            await profile_service.update_role(make_profile(role, is_active=active), uuid4(), "admin")
        profile_service.profile_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_cannot_change_own_role(self, profile_service, make_profile):
        admin = make_profile("admin")

        with pytest.raises(SelfModificationError):
            await profile_service.update_role(admin, admin.id, "user")
        profile_service.profile_repo.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_may_restate_own_role(self, profile_service, make_profile):
        admin = make_profile("admin")
        profile_service.profile_repo.update.return_value = admin

        updated = await profile_service.update_role(admin, admin.id, "admin")

        assert updated.role == "admin"
        profile_service.profile_repo.update.assert_awaited_once_with(admin.id, role="admin")

    @pytest.mark.asyncio
    async def test_invalid_role(self, profile_service, make_profile):
        with pytest.raises(ValidationError):
            await profile_service.update_role(make_profile("admin"), uuid4(), "owner")

    @pytest.mark.asyncio
    async def test_missing_target(self, profile_service, make_profile):
        profile_service.profile_repo.update.return_value = None

        with pytest.raises(NotFoundError):
            await profile_service.update_role(make_profile("admin"), uuid4(), "curator")
        profile_service.session.rollback.assert_awaited_once()


class TestActivation:

    @pytest.mark.asyncio
    async def test_admin_cannot_deactivate_self(self, profile_service, make_profile):
        admin = make_profile("admin")

        with pytest.raises(SelfModificationError):
            await profile_service.set_active(admin, admin.id, False)

    @pytest.mark.asyncio
    async def test_admin_deactivates_other(self, profile_service, make_profile):
        target_id = uuid4()
        profile_service.profile_repo.update.return_value = make_profile(
            "curator", id=target_id, is_active=False
        )

        updated = await profile_service.set_active(make_profile("admin"), target_id, False)

        assert updated.is_active is False
        profile_service.profile_repo.update.assert_awaited_once_with(target_id, is_active=False)


class TestSelfService:

    @pytest.mark.asyncio
    async def test_rename_backfills_vectors(self, profile_service, make_profile):
        curator = make_profile("curator")
        profile_service.profile_repo.update.return_value = make_profile(
            "curator", id=curator.id, full_name="Cora B. Curator"
        )

        updated = await profile_service.update_name(curator, "Cora B. Curator")

        assert updated.full_name == "Cora B. Curator"
        profile_service.vector_repo.backfill_curator_name.assert_awaited_once_with(
            curator.id, "Cora B. Curator"
        )
        profile_service.session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_list_requires_curator(self, profile_service, make_profile):
        with pytest.raises(AuthorizationError):
            await profile_service.list_profiles(make_profile("user"))

        profile_service.profile_repo.list_profiles.return_value = []
        assert await profile_service.list_profiles(make_profile("curator")) == []
