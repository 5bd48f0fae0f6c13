"""Cache-aware REST client."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from saxon_scout.cache.context import CacheContext, TierName
from saxon_scout.cache.key_builder import build_cache_key
from saxon_scout.config import CachePolicy
from saxon_scout.exceptions import APIError, normalize_error

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
JSON_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


class CachedAPIClient:
    """HTTP client whose GET requests are served from a cache tier when possible.

    Writes (POST/PUT/PATCH/DELETE) always go to the network and never read or
    populate the cache. Every failure is raised as an ``APIError``.

    Example:
        ```python
        async with CacheContext() as cache:
            async with CachedAPIClient("http://localhost:3000/api", cache) as client:
                matches = await client.get("/scouting/matches", {"team": 4414})
        ```

    Attributes:
        base_url: Prefix for every request path
        cache: Shared cache context
        default_cache_policy: Policy applied to GETs unless overridden per call
    """

    def __init__(
        self,
        base_url: str,
        cache: CacheContext,
        *,
        cache_policy: CachePolicy | Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        auth: httpx.Auth | tuple[str, str] | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API base URL
            cache: Cache context shared with other clients and queries
            cache_policy: Partial override of the default policy
            headers: Extra headers sent with every request
            auth: httpx auth, e.g. a ``(username, password)`` pair
            timeout: Transport timeout in seconds
            transport: Custom httpx transport
        """
        self.base_url = base_url
        self.cache = cache
        self.default_cache_policy = CachePolicy().merged(cache_policy)
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers={**JSON_HEADERS, **(headers or {})},
            auth=auth,
            transport=transport,
        )

    async def __aenter__(self) -> CachedAPIClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        if not response.content:
            return None
        return response.json()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        logger.debug("API request: %s %s", method, path)
        try:
            response = await self._client.request(method, path, params=params, json=json)
            response.raise_for_status()
            return self._decode(response)
        except Exception as exc:
            error = normalize_error(exc)
            logger.debug("API error on %s %s: %s", method, path, error)
            raise error from exc

    async def get(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        cache: CachePolicy | Mapping[str, Any] | None = None,
    ) -> Any:
        """Make a GET request, consulting the cache first.

        Args:
            path: Request path relative to the base URL
            params: Query parameters
            cache: Partial policy override for this call

        Returns:
            Decoded response body, possibly from cache

        Raises:
            APIError: If the request fails
        """
        policy = self.default_cache_policy.merged(cache)
        if not policy.enabled:
            return await self._request("GET", path, params=params)

        key = build_cache_key("GET", path, params)
        tier = self.cache.tier(policy.tier)

        cached = tier.get(key)
        if cached is not None:
            logger.debug("cache hit for %s", key)
            self.cache.metrics.hit(tier=tier.name)
            return cached

        logger.debug("cache miss for %s", key)
        self.cache.metrics.miss(tier=tier.name)
        data = await self._request("GET", path, params=params)
        if data is not None:
            tier.set(key, data, policy.ttl)
            self.cache.metrics.write(tier=tier.name)
        return data

    async def post(self, path: str, data: Any = None, params: Mapping[str, Any] | None = None) -> Any:
        return await self._request("POST", path, params=params, json=data)

    async def put(self, path: str, data: Any = None, params: Mapping[str, Any] | None = None) -> Any:
        return await self._request("PUT", path, params=params, json=data)

    async def patch(self, path: str, data: Any = None, params: Mapping[str, Any] | None = None) -> Any:
        return await self._request("PATCH", path, params=params, json=data)

    async def delete(self, path: str, params: Mapping[str, Any] | None = None) -> Any:
        return await self._request("DELETE", path, params=params)

    def clear_cache(self, tier: TierName | None = None) -> None:
        """Clear one cache tier, or both when ``tier`` is None."""
        self.cache.clear(tier)

    def clear_expired_cache(self, tier: TierName | None = None) -> int:
        """Drop expired entries from one cache tier, or both."""
        return self.cache.clear_expired(tier)

    def get_cache_stats(self) -> dict[str, dict[str, int]]:
        return self.cache.stats()


__all__ = ["APIError", "CachedAPIClient", "DEFAULT_TIMEOUT"]
