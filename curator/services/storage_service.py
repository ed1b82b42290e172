"""Storage service for handling Supabase storage operations."""

from typing import Any, Dict

import httpx

from curator.core.config import settings
from curator.core.exceptions import ExternalServiceError
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)


class StorageService:
    """Service for managing document blobs in Supabase storage."""

    def __init__(self, bucket: str = None):
        self.url = settings.supabase_url.rstrip("/")
        self.bucket = bucket or settings.supabase.storage_bucket
        self.service_role_key = settings.supabase_service_role_key
        self.base_api_url = f"{self.url}/storage/v1"
        self.headers = {
            "Authorization": f"Bearer {self.service_role_key}",
            "apikey": self.service_role_key,
        }

    async def upload_file(
        self,
        content: bytes,
        path: str,
        content_type: str = "application/octet-stream",
    ) -> Dict[str, Any]:
        """Upload a file to the documents bucket.

        Args:
            content: Raw file bytes.
            path: Target path within the bucket.
            content_type: MIME type stored with the object.

        Returns:
            Dict containing the upload result.

        Raises:
            ExternalServiceError: If the upload fails.
        """
        upload_url = f"{self.base_api_url}/object/{self.bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    upload_url,
                    headers={**self.headers, "Content-Type": content_type},
                    content=content,
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error uploading file to Supabase: {str(e)}", exc_info=True)
            raise ExternalServiceError(f"Storage upload error: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to upload file to Supabase: {response.text}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code},
            )
            raise ExternalServiceError(f"Upload failed: {response.text}")

        return response.json()

    async def delete_file(self, path: str) -> None:
        """Remove an object from the documents bucket.

        Raises:
            ExternalServiceError: If storage refuses the delete.
        """
        url = f"{self.base_api_url}/object/{self.bucket}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.request(
                    "DELETE",
                    url,
                    headers=self.headers,
                    json={"prefixes": [path]},
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error deleting file from Supabase: {str(e)}", exc_info=True)
            raise ExternalServiceError(f"Storage delete error: {str(e)}", original_error=e)

        if response.status_code != 200:
            LOGGER.error(
                f"Failed to delete file from Supabase: {response.text}",
                extra={"bucket": self.bucket, "path": path, "status_code": response.status_code},
            )
            raise ExternalServiceError(f"Delete failed: {response.text}")

    async def get_signed_url(self, path: str, expires_in: int = 3600) -> str:
        """Generate a signed download URL for a stored document.

        Raises:
            ExternalServiceError: If URL generation fails.
        """
        url = f"{self.base_api_url}/object/sign/{self.bucket}/{path}"

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    url,
                    headers=self.headers,
                    json={"expiresIn": expires_in},
                    timeout=settings.http_timeout,
                )
        except httpx.HTTPError as e:
            LOGGER.error(f"Error generating signed URL: {str(e)}", exc_info=True)
            raise ExternalServiceError(f"Signed URL error: {str(e)}", original_error=e)

        if response.status_code != 200:
            raise ExternalServiceError(f"Signed URL generation failed: {response.text}")

        signed_path = response.json().get("signedURL")
        if not signed_path:
            raise ExternalServiceError("Supabase response did not contain signedURL")

        # Supabase answers with a path relative to the project URL
        if signed_path.startswith("/"):
            return f"{self.url}/storage/v1{signed_path}"
        return signed_path
