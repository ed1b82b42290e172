from typing import Annotated, Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends

from curator.api.dependencies import get_current_profile, get_profile_service
from curator.database.models import Profile
from curator.schemas.profiles import (
    ActiveUpdateRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    RoleUpdateRequest,
)
from curator.services.profile_service import ProfileService
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get the caller's profile",
    operation_id="get_my_profile",
)
async def get_my_profile(
    profile: Annotated[Profile, Depends(get_current_profile)],
) -> ProfileResponse:
    return ProfileResponse.model_validate(profile)


@router.patch(
    "/me",
    response_model=ProfileResponse,
    summary="Update the caller's name",
    operation_id="update_my_profile",
)
async def update_my_profile(
    body: ProfileUpdateRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> ProfileResponse:
    updated = await profile_service.update_name(profile, body.full_name)
    return ProfileResponse.model_validate(updated)


@router.get(
    "",
    summary="List profiles",
    operation_id="list_profiles",
)
async def list_profiles(
    profile: Annotated[Profile, Depends(get_current_profile)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> Dict[str, Any]:
    profiles = await profile_service.list_profiles(profile)
    return {"profiles": [ProfileResponse.model_validate(p) for p in profiles]}


@router.put(
    "/{profile_id}/role",
    response_model=ProfileResponse,
    summary="Change a profile's role",
    operation_id="update_profile_role",
)
async def update_profile_role(
    profile_id: UUID,
    body: RoleUpdateRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> ProfileResponse:
    updated = await profile_service.update_role(profile, profile_id, body.role)
    return ProfileResponse.model_validate(updated)


@router.put(
    "/{profile_id}/active",
    response_model=ProfileResponse,
    summary="Activate or deactivate a profile",
    operation_id="update_profile_active",
)
async def update_profile_active(
    profile_id: UUID,
    body: ActiveUpdateRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    profile_service: Annotated[ProfileService, Depends(get_profile_service)],
) -> ProfileResponse:
    updated = await profile_service.set_active(profile, profile_id, body.is_active)
    return ProfileResponse.model_validate(updated)
