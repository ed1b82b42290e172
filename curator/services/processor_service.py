"""Hand documents to the external chunking pipeline."""

from typing import Any, Dict

import httpx

from curator.core.config import settings
from curator.core.exceptions import ConfigurationError, ExternalServiceError
from curator.database.models import Document
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ProcessorService:
    """Submit a stored document to Flowise or to the direct Gemini processor.

    The processor chunks and annotates the document out of band and reports
    back through the chunk ingestion endpoint.
    """

    def __init__(self, timeout: int = None):
        self.providers = settings.providers
        self.timeout = timeout or settings.http_timeout

    async def submit(self, document: Document, processor: str, file_url: str) -> Dict[str, Any]:
        """Submit ``document`` to ``processor``.

        Args:
            document: Document being processed
            processor: ``flowise`` or ``direct_gemini``
            file_url: Signed URL the processor downloads the file from

        Returns:
            The processor's JSON acknowledgement

        Raises:
            ConfigurationError: If the processor is not configured
            ExternalServiceError: If the processor rejects the request
        """
        payload = {
            "documentId": str(document.id),
            "docType": document.doc_type,
            "filename": document.original_filename,
            "mimeType": document.mime_type,
            "fileUrl": file_url,
        }

        if processor == "flowise":
            url, headers, body = self._flowise_request(document, payload)
        elif processor == "direct_gemini":
            if not self.providers.direct_gemini_processor_url:
                raise ConfigurationError("DIRECT_GEMINI_PROCESSOR_URL is not configured")
            url, headers, body = self.providers.direct_gemini_processor_url, {}, payload
        else:
            raise ConfigurationError(f"Unknown document processor: {processor}")

        LOGGER.info(f"Submitting document {document.id} to {processor}")
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=body, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            LOGGER.error(
                f"{processor} rejected document {document.id}: {e.response.status_code} {e.response.text}"
            )
            raise ExternalServiceError(
                f"{processor} returned status {e.response.status_code}", original_error=e
            )
        except httpx.HTTPError as e:
            LOGGER.error(f"{processor} request for document {document.id} failed: {e}", exc_info=True)
            raise ExternalServiceError(f"{processor} request failed: {e}", original_error=e)

        try:
            return response.json()
        except ValueError:
            return {"response": response.text}

    def _flowise_request(self, document: Document, payload: Dict[str, Any]):
        if not self.providers.flowise_url or not self.providers.flowise_chatflow_id:
            raise ConfigurationError("FLOWISE_URL and FLOWISE_CHATFLOW_ID must be configured")

        url = (
            f"{self.providers.flowise_url.rstrip('/')}"
            f"/api/v1/prediction/{self.providers.flowise_chatflow_id}"
        )
        headers = {}
        if self.providers.flowise_api_key:
            headers["Authorization"] = f"Bearer {self.providers.flowise_api_key}"
        body = {
            "question": f"Process document {document.original_filename}",
            "overrideConfig": {"vars": payload},
        }
        return url, headers, body
