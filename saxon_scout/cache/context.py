"""Cache context: the handle owning both cache tiers and their sweeper."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Literal

from saxon_scout.cache.base import CacheTier, Clock
from saxon_scout.cache.memory import MemoryCache
from saxon_scout.cache.metrics import CacheMetricsProtocol, NoopCacheMetrics
from saxon_scout.cache.persistent import DEFAULT_PREFIX, PersistentCache
from saxon_scout.cache.stores import KeyValueStore

logger = logging.getLogger(__name__)

TierName = Literal["memory", "persistent"]

DEFAULT_SWEEP_INTERVAL = 5 * 60


class CacheSweeper:
    """Repeating task that drops expired entries from every tier.

    One loop per sweeper; a sweep never overlaps another because the next
    sleep only starts once the previous sweep returned.
    """

    def __init__(self, tiers: list[CacheTier], interval_seconds: float = DEFAULT_SWEEP_INTERVAL) -> None:
        self.tiers = tiers
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def sweep(self) -> int:
        removed = 0
        for tier in self.tiers:
            count = tier.clear_expired()
            if count:
                logger.debug("swept %d expired entries from %s cache", count, tier.name)
            removed += count
        return removed

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                self.sweep()
            except Exception as exc:
                logger.error("cache sweep failed: %s", exc)

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None


class CacheContext:
    """Both cache tiers plus their lifecycle.

    Pass one context to every API client and query that should share a cache.
    Separate contexts are fully isolated from each other.

    Example:
        ```python
        async with CacheContext(store=FileStore("cache.json")) as cache:
            client = CachedAPIClient("https://example.org/api", cache)
        ```
    """

    def __init__(
        self,
        *,
        store: KeyValueStore | None = None,
        prefix: str = DEFAULT_PREFIX,
        clock: Clock | None = None,
        metrics: CacheMetricsProtocol | None = None,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL,
    ) -> None:
        self.metrics = metrics or NoopCacheMetrics()
        self.memory = MemoryCache(clock=clock)
        self.persistent = PersistentCache(store, prefix=prefix, clock=clock, metrics=self.metrics)
        self.sweeper = CacheSweeper([self.memory, self.persistent], sweep_interval_seconds)

    def tier(self, name: TierName) -> CacheTier:
        if name == "memory":
            return self.memory
        if name == "persistent":
            return self.persistent
        raise ValueError(f"Unknown cache tier: {name}")

    def tiers(self, name: TierName | None = None) -> list[CacheTier]:
        """Select one tier by name, or both when ``name`` is None."""
        if name is None:
            return [self.memory, self.persistent]
        return [self.tier(name)]

    def clear(self, name: TierName | None = None) -> None:
        for tier in self.tiers(name):
            tier.clear()

    def clear_expired(self, name: TierName | None = None) -> int:
        return sum(tier.clear_expired() for tier in self.tiers(name))

    def stats(self) -> dict[str, dict[str, int]]:
        return {
            "memory": {"size": self.memory.size},
            "persistent": {"size": self.persistent.size},
        }

    async def init(self) -> CacheContext:
        """Start the periodic sweep. Must be called from a running loop."""
        self.sweeper.start()
        return self

    async def dispose(self) -> None:
        await self.sweeper.stop()

    async def __aenter__(self) -> CacheContext:
        return await self.init()

    async def __aexit__(self, *exc_info: object) -> None:
        await self.dispose()
