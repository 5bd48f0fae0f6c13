"""Persistent cache tier over a durable key-value store."""

import json
import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

from saxon_scout.cache.base import CacheEntry, CacheExpiry, CacheTier, Clock
from saxon_scout.cache.metrics import CacheMetricsProtocol, NoopCacheMetrics
from saxon_scout.cache.stores import InMemoryStore, KeyValueStore
from saxon_scout.exceptions import (
    CacheFault,
    DeserializationError,
    SerializationError,
    StorageError,
)

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "saxon_scout_cache_"

T = TypeVar("T")


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    """Outcome of a persistent cache operation: a value or a fault.

    Attributes:
        value: Result value (None for a miss or for writes)
        fault: Fault that occurred, if any
    """

    value: Optional[T] = None
    fault: Optional[CacheFault] = None

    @property
    def ok(self) -> bool:
        return self.fault is None


class PersistentCache(CacheTier):
    """Cache whose entries survive a process restart.

    Each entry is stored as JSON under ``prefix + key``. Every fault is
    recovered inside this class: reads degrade to a miss and writes are
    dropped. Keys without the prefix are never touched.

    Example:
        ```python
        cache = PersistentCache(FileStore("~/.saxon_scout/cache.json"))
        cache.set("teams", [{"team_number": 4414}], CacheExpiry.LONG)
        cache.get("teams")
        ```
    """

    name = "persistent"

    def __init__(
        self,
        store: Optional[KeyValueStore] = None,
        prefix: str = DEFAULT_PREFIX,
        clock: Optional[Clock] = None,
        metrics: Optional[CacheMetricsProtocol] = None,
    ) -> None:
        """Initialize the persistent cache.

        Args:
            store: Backing store, defaults to an unbounded in-memory store
            prefix: Namespace prefix for every key this cache owns
            clock: Millisecond clock
            metrics: Receives fault counts
        """
        super().__init__(clock)
        self.store = store if store is not None else InMemoryStore()
        self.prefix = prefix
        self.metrics = metrics or NoopCacheMetrics()

    def _make_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def _report(self, operation: str, fault: CacheFault) -> None:
        logger.warning("persistent cache %s failed for %r: %s", operation, fault.key, fault.message)
        self.metrics.error(tier=self.name, operation=operation)

    def _decode(self, key: str, raw: str) -> CacheResult[CacheEntry]:
        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise ValueError("entry is not a JSON object")
            entry = CacheEntry.from_dict(payload)
        except (KeyError, TypeError, ValueError) as exc:
            return CacheResult(fault=DeserializationError(str(exc), key=key))
        return CacheResult(value=entry)

    def try_set(self, key: str, data: Any, expiry: float = CacheExpiry.MEDIUM) -> CacheResult[None]:
        """Store a value and report what happened instead of raising.

        Args:
            key: Cache key
            data: JSON-serializable data
            expiry: Lifetime in milliseconds

        Returns:
            Empty result, or one carrying the fault
        """
        entry = CacheEntry(data=data, timestamp=self.now(), expiry=expiry)
        try:
            raw = json.dumps(entry.to_dict(), allow_nan=False, separators=(",", ":"))
        except (TypeError, ValueError) as exc:
            return CacheResult(fault=SerializationError(str(exc), key=key))

        try:
            self.store.set_item(self._make_key(key), raw)
        except StorageError as exc:
            exc.key = exc.key or key
            return CacheResult(fault=exc)
        return CacheResult()

    def try_get(self, key: str) -> CacheResult[Any]:
        """Read a value and report faults instead of raising.

        Expired entries are removed and read as a miss.

        Args:
            key: Cache key

        Returns:
            Result with the cached data (None on a miss) or a fault
        """
        full_key = self._make_key(key)
        try:
            raw = self.store.get_item(full_key)
        except StorageError as exc:
            exc.key = exc.key or key
            return CacheResult(fault=exc)
        if raw is None:
            return CacheResult()

        decoded = self._decode(key, raw)
        if not decoded.ok:
            return CacheResult(fault=decoded.fault)

        if not decoded.value.is_valid(self.now()):
            self.delete(key)
            return CacheResult()
        return CacheResult(value=decoded.value.data)

    def set(self, key: str, data: Any, expiry: float = CacheExpiry.MEDIUM) -> None:
        result = self.try_set(key, data, expiry)
        if not result.ok:
            self._report("set", result.fault)

    def get(self, key: str) -> Any:
        result = self.try_get(key)
        if not result.ok:
            self._report("get", result.fault)
            return None
        return result.value

    def delete(self, key: str) -> None:
        try:
            self.store.remove_item(self._make_key(key))
        except StorageError as exc:
            exc.key = exc.key or key
            self._report("delete", exc)

    def _owned_keys(self) -> list[str]:
        try:
            return self.store.keys(self.prefix)
        except StorageError as exc:
            self._report("keys", exc)
            return []

    def _remove_many(self, full_keys: list[str], operation: str) -> int:
        if not full_keys:
            return 0
        try:
            self.store.remove_items(full_keys)
        except StorageError as exc:
            self._report(operation, exc)
            return 0
        return len(full_keys)

    def clear(self) -> None:
        self._remove_many(self._owned_keys(), "clear")

    def clear_expired(self) -> int:
        """Remove expired entries, and any entry that fails to decode.

        Returns:
            Number of entries removed
        """
        now = self.now()
        doomed: list[str] = []
        for full_key in self._owned_keys():
            key = full_key[len(self.prefix):]
            try:
                raw = self.store.get_item(full_key)
            except StorageError as exc:
                exc.key = exc.key or key
                self._report("clear_expired", exc)
                continue
            if raw is None:
                continue

            decoded = self._decode(key, raw)
            if decoded.ok and decoded.value.is_valid(now):
                continue
            doomed.append(full_key)

        return self._remove_many(doomed, "clear_expired")

    @property
    def size(self) -> int:
        return len(self._owned_keys())

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
