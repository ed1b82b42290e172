from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import RedirectResponse

from curator.core.auth import get_current_user_optional
from curator.core.config import settings
from curator.schemas.auth import CurrentUser
from curator.services.auth_service import AuthService
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


def get_auth_service() -> AuthService:
    return AuthService()


@router.post(
    "/signout",
    summary="Sign out and return to the login page",
    operation_id="sign_out",
    response_class=RedirectResponse,
    status_code=status.HTTP_303_SEE_OTHER,
)
async def sign_out(
    current_user: Annotated[Optional[CurrentUser], Depends(get_current_user_optional)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> RedirectResponse:
    """Revoke the caller's Supabase session, if any, then redirect to ``/login``."""
    if current_user is not None and current_user.access_token:
        await auth_service.sign_out(current_user.access_token)
        LOGGER.info(f"User {current_user.id} signed out")

    return RedirectResponse(
        url=f"{settings.app_url.rstrip('/')}/login",
        status_code=status.HTTP_303_SEE_OTHER,
    )
