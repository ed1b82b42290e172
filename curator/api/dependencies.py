"""Request-scoped dependencies: caller profile, role gates and runtime config."""

from typing import Annotated, Callable
from uuid import UUID

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from curator.core.auth import get_current_user
from curator.core.database import get_async_session as get_session
from curator.core.exceptions import AuthorizationError
from curator.core.roles import satisfies
from curator.database.models import Profile
from curator.schemas.auth import CurrentUser
from curator.services.profile_service import ProfileService
from curator.services.settings_service import RuntimeConfig, SettingsService
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)


async def get_profile_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> ProfileService:
    return ProfileService(db_session)


async def get_settings_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> SettingsService:
    return SettingsService(db_session)


async def get_current_profile(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> Profile:
    """Profile of the caller, created on first sight.

    When creation fails the request continues as an unsaved plain ``user``
    profile; creation is retried on the next request.
    """
    profile = await profile_service.create_profile_on_first_sight(current_user)
    if profile is None:
        return Profile(
            id=UUID(current_user.id),
            email=current_user.email,
            full_name=current_user.display_name,
            role="user",
            is_active=True,
        )
    return profile


def require_role(required_role: str) -> Callable:
    """Build a dependency that admits profiles satisfying ``required_role``."""

    async def dependency(
        profile: Annotated[Profile, Depends(get_current_profile)],
    ) -> Profile:
        if not satisfies(profile.role, required_role, profile.is_active):
            LOGGER.warning(f"Profile {profile.id} ({profile.role}) lacks {required_role} access")
            raise AuthorizationError("Insufficient permissions")
        return profile

    return dependency


async def get_runtime_config(
    settings_service: Annotated[SettingsService, Depends(get_settings_service)],
) -> RuntimeConfig:
    """Resolve the active provider and processor once for this request."""
    return await settings_service.get_runtime_config()
