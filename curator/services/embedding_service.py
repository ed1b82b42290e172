"""Query and chunk embeddings from the configured provider."""

from typing import List

import httpx

from curator.core.config import settings
from curator.core.exceptions import ConfigurationError, ExternalServiceError
from curator.database.models import GEMINI_EMBEDDING_DIM, OPENAI_EMBEDDING_DIM
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

EMBEDDING_DIMENSIONS = {
    "gemini": GEMINI_EMBEDDING_DIM,
    "openai": OPENAI_EMBEDDING_DIM,
}


class EmbeddingService:
    """Compute embeddings with Gemini ``text-embedding-004`` or OpenAI ``text-embedding-3-small``."""

    def __init__(self, timeout: int = None):
        self.providers = settings.providers
        self.timeout = timeout or settings.http_timeout

    async def embed(self, text: str, provider: str) -> List[float]:
        """Embed ``text`` with ``provider``.

        Args:
            text: Content to embed
            provider: ``gemini`` or ``openai``

        Returns:
            Embedding vector of the provider's dimension

        Raises:
            ConfigurationError: If the provider is unknown or has no API key
            ExternalServiceError: If the provider call fails
        """
        if provider == "gemini":
            embedding = await self._embed_gemini(text)
        elif provider == "openai":
            embedding = await self._embed_openai(text)
        else:
            raise ConfigurationError(f"Unknown embedding provider: {provider}")

        expected = EMBEDDING_DIMENSIONS[provider]
        if len(embedding) != expected:
            raise ExternalServiceError(
                f"{provider} returned a {len(embedding)}-dimensional embedding, expected {expected}"
            )
        return embedding

    async def _embed_gemini(self, text: str) -> List[float]:
        if not self.providers.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")

        model = self.providers.gemini_embedding_model
        url = f"{self.providers.gemini_api_url}/models/{model}:embedContent"
        payload = {
            "model": f"models/{model}",
            "content": {"parts": [{"text": text}]},
        }
        data = await self._post(
            url,
            payload,
            headers={"x-goog-api-key": self.providers.gemini_api_key},
            provider="gemini",
        )
        try:
            return data["embedding"]["values"]
        except (KeyError, TypeError) as e:
            raise ExternalServiceError("Unexpected Gemini embedding response", original_error=e)

    async def _embed_openai(self, text: str) -> List[float]:
        if not self.providers.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

        url = f"{self.providers.openai_api_url}/embeddings"
        payload = {"model": self.providers.openai_embedding_model, "input": text}
        data = await self._post(
            url,
            payload,
            headers={"Authorization": f"Bearer {self.providers.openai_api_key}"},
            provider="openai",
        )
        try:
            return data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalServiceError("Unexpected OpenAI embedding response", original_error=e)

    async def _post(self, url: str, payload: dict, headers: dict, provider: str) -> dict:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                return response.json()
        except httpx.HTTPStatusError as e:
            LOGGER.error(
                f"{provider} embedding request failed: {e.response.status_code} {e.response.text}",
                exc_info=True,
            )
            raise ExternalServiceError(
                f"{provider} embedding request failed with status {e.response.status_code}",
                original_error=e,
            )
        except httpx.HTTPError as e:
            LOGGER.error(f"{provider} embedding request error: {e}", exc_info=True)
            raise ExternalServiceError(f"{provider} embedding request error: {e}", original_error=e)
