"""In-memory cache tier."""

from typing import Any, Optional

from saxon_scout.cache.base import CacheEntry, CacheExpiry, CacheTier, Clock


class MemoryCache(CacheTier):
    """Process-lifetime cache.

    Entries are evicted lazily on read and by ``clear_expired``. There is no
    size bound.
    """

    name = "memory"

    def __init__(self, clock: Optional[Clock] = None) -> None:
        super().__init__(clock)
        self._cache: dict[str, CacheEntry] = {}

    def set(self, key: str, data: Any, expiry: float = CacheExpiry.MEDIUM) -> None:
        """Set a value in the cache.

        Args:
            key: Cache key
            data: Data to cache
            expiry: Lifetime in milliseconds
        """
        self._cache[key] = CacheEntry(data=data, timestamp=self.now(), expiry=expiry)

    def get(self, key: str) -> Any:
        """Get a value from the cache.

        Args:
            key: Cache key

        Returns:
            Cached data, or None if not found or expired
        """
        entry = self._cache.get(key)
        if entry is None:
            return None

        if not entry.is_valid(self.now()):
            del self._cache[key]
            return None

        return entry.data

    def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def clear_expired(self) -> int:
        now = self.now()
        expired_keys = [
            key for key, entry in self._cache.items()
            if not entry.is_valid(now)
        ]
        for key in expired_keys:
            del self._cache[key]
        return len(expired_keys)

    @property
    def size(self) -> int:
        return len(self._cache)

    def __contains__(self, key: str) -> bool:
        entry = self._cache.get(key)
        return entry is not None and entry.is_valid(self.now())
