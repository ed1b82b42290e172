"""Supabase Auth session operations."""

import httpx

from curator.core.config import settings
from curator.core.exceptions import ExternalServiceError
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)


class AuthService:
    """Thin client for the Supabase Auth REST API."""

    def __init__(self):
        self.auth_url = f"{settings.supabase_url.rstrip('/')}/auth/v1"
        self.anon_key = settings.supabase_anon_key

    async def sign_out(self, access_token: str) -> None:
        """Revoke the session behind ``access_token``.

        Raises:
            ExternalServiceError: If Supabase cannot be reached or refuses
        """
        try:
            async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
                response = await client.post(
                    f"{self.auth_url}/logout",
                    headers={
                        "Authorization": f"Bearer {access_token}",
                        "apikey": self.anon_key,
                    },
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Supabase logout failed: {e}", exc_info=True)
            raise ExternalServiceError(f"Sign out failed: {e}", original_error=e)

        # 401/403 means the session is already gone
        if response.status_code not in (200, 204, 401, 403):
            LOGGER.error(f"Supabase logout returned {response.status_code}: {response.text}")
            raise ExternalServiceError(f"Sign out failed with status {response.status_code}")
