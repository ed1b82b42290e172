from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends

from curator.api.dependencies import get_current_profile, get_settings_service
from curator.core.auth import get_current_user
from curator.database.models import Profile
from curator.schemas.auth import CurrentUser
from curator.schemas.settings import SettingsUpdateRequest, SettingsUpdateResponse
from curator.services.settings_service import SettingsService
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


@router.get(
    "/settings",
    summary="Read runtime settings",
    operation_id="get_settings",
)
async def get_settings(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    settings_service: Annotated[SettingsService, Depends(get_settings_service)],
) -> Dict[str, Any]:
    """All stored settings as ``{key: value}``."""
    return await settings_service.get_settings()


@router.post(
    "/settings",
    response_model=SettingsUpdateResponse,
    response_model_by_alias=True,
    summary="Change the AI provider and/or document processor",
    operation_id="update_settings",
)
async def update_settings(
    body: SettingsUpdateRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    settings_service: Annotated[SettingsService, Depends(get_settings_service)],
) -> SettingsUpdateResponse:
    result = await settings_service.update_settings(
        profile,
        provider=body.provider,
        document_processor=body.document_processor,
    )
    return SettingsUpdateResponse(success=True, **result)
