"""JWKS (JSON Web Key Set) cache for Supabase asymmetric JWT signing keys."""

import asyncio
import time
from typing import Any, Dict, Optional

import httpx
import jwt

from curator.core.config import settings
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)


class JWKSService:
    """Fetch and cache Supabase's public signing keys, keyed by ``kid``."""

    def __init__(self, supabase_url: str, cache_ttl: int = 3600, timeout: int = 30):
        self.supabase_url = supabase_url.rstrip("/")
        self.jwks_url = f"{self.supabase_url}/auth/v1/.well-known/jwks.json"
        self.cache_ttl = cache_ttl
        self.timeout = timeout

        self._keys_cache: Optional[Dict[str, jwt.PyJWK]] = None
        self._cache_timestamp: Optional[float] = None
        self._lock = asyncio.Lock()

    async def get_keys(self) -> Dict[str, jwt.PyJWK]:
        """Get JWKS keys, refreshing the cache once it is older than ``cache_ttl``.

        Raises:
            RuntimeError: If keys cannot be fetched
        """
        async with self._lock:
            if self._is_cache_valid():
                return dict(self._keys_cache)

            LOGGER.info("Fetching fresh JWKS keys from Supabase")
            keys = await self._fetch_keys()
            self._keys_cache = keys
            self._cache_timestamp = time.time()
            return dict(keys)

    async def get_key(self, kid: str) -> Optional[jwt.PyJWK]:
        keys = await self.get_keys()
        return keys.get(kid)

    def _is_cache_valid(self) -> bool:
        if self._keys_cache is None or self._cache_timestamp is None:
            return False
        return time.time() - self._cache_timestamp < self.cache_ttl

    async def _fetch_keys(self) -> Dict[str, jwt.PyJWK]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.jwks_url)
        except httpx.HTTPError as e:
            LOGGER.error(f"Network error fetching JWKS: {e}")
            raise RuntimeError(f"Failed to fetch JWKS keys: {e}") from e

        if response.status_code != 200:
            raise RuntimeError(f"JWKS endpoint returned {response.status_code}: {response.text}")

        data: Dict[str, Any] = response.json()
        keys: Dict[str, jwt.PyJWK] = {}
        for raw_key in data.get("keys", []):
            kid = raw_key.get("kid")
            if not kid:
                continue
            try:
                keys[kid] = jwt.PyJWK(raw_key)
            except jwt.PyJWKError as e:
                LOGGER.warning(f"Skipping unusable JWK {kid}: {e}")

        LOGGER.info(f"Fetched {len(keys)} JWKS keys")
        return keys


jwks_service = JWKSService(
    supabase_url=settings.supabase_url,
    cache_ttl=settings.supabase_jwks_cache_ttl,
)
