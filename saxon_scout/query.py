"""Cached queries: fetch-or-read-from-cache with loading and error state.

A query wraps an arbitrary async fetcher. UI code reads ``data``,
``is_loading`` and ``error`` and calls ``refetch()``; listeners registered
with ``subscribe`` are told about every state change.

Each load captures a generation number. Changing the key, refetching or
disposing bumps the generation, and a fetch that completes under an old
generation never touches the query's state (it still fills the cache under
the key it was fetched for).
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Iterable, TypeVar

from saxon_scout.cache.base import CacheExpiry, CacheTier
from saxon_scout.cache.context import CacheContext, TierName

logger = logging.getLogger(__name__)

T = TypeVar("T")

ErrorCallback = Callable[[BaseException], None]


class QueryStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QueryState(Generic[T]):
    key: str
    status: QueryStatus
    data: T | None = None
    error: BaseException | None = None

    @property
    def is_loading(self) -> bool:
        return self.status == QueryStatus.LOADING


@dataclass(frozen=True)
class QueryMapState(Generic[T]):
    keys: tuple[str, ...]
    status: QueryStatus
    data_map: dict[str, T] = field(default_factory=dict)
    error: BaseException | None = None

    @property
    def is_loading(self) -> bool:
        return self.status == QueryStatus.LOADING


class _BaseQuery(ABC):
    def __init__(
        self,
        cache: CacheContext,
        *,
        tier: TierName = "memory",
        ttl: float = CacheExpiry.MEDIUM,
        revalidate: bool = False,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self.cache = cache
        self.tier: CacheTier = cache.tier(tier)
        self.ttl = ttl
        self.revalidate = revalidate
        self.on_error = on_error
        self.status = QueryStatus.IDLE
        self.error: BaseException | None = None
        self._generation = 0
        self._disposed = False
        self._listeners: list[Callable[[Any], None]] = []
        self._background: set[asyncio.Task[None]] = set()

    @property
    def is_loading(self) -> bool:
        return self.status == QueryStatus.LOADING

    @property
    def disposed(self) -> bool:
        return self._disposed

    @abstractmethod
    def snapshot(self) -> Any:
        """Immutable view of the current state."""

    @abstractmethod
    async def load(self, *, skip_cache: bool = False) -> Any:
        """Resolve the current key(s), from cache unless ``skip_cache``."""

    @abstractmethod
    async def refetch(self) -> Any:
        """Fetch again, bypassing the cache."""

    def subscribe(self, listener: Callable[[Any], None]) -> Callable[[], None]:
        """Register a listener called with a snapshot after each change.

        Returns:
            Function removing the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        if not self._listeners:
            return
        state = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("query listener failed")

    def _report_error(self, exc: BaseException) -> None:
        if self.on_error is None:
            return
        try:
            self.on_error(exc)
        except Exception:
            logger.exception("query on_error callback failed")

    def _begin(self) -> int:
        self._generation += 1
        self.status = QueryStatus.LOADING
        self.error = None
        self._notify()
        return self._generation

    def _is_current(self, generation: int) -> bool:
        return not self._disposed and generation == self._generation

    def _schedule(self, coroutine: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coroutine)
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def wait_idle(self) -> None:
        """Wait for outstanding background revalidations."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def dispose(self) -> None:
        """Detach the query; results still in flight are ignored."""
        self._disposed = True
        self._generation += 1
        self._listeners.clear()


class CachedQuery(_BaseQuery, Generic[T]):
    """Single-key cached query.

    Example:
        ```python
        query = CachedQuery(cache, "team:4414", lambda: tba.get_team(4414), revalidate=True)
        await query.load()
        if query.error is None:
            render(query.data)
        ```
    """

    def __init__(
        self,
        cache: CacheContext,
        key: str,
        fetcher: Callable[[], Awaitable[T]],
        *,
        tier: TierName = "memory",
        ttl: float = CacheExpiry.MEDIUM,
        revalidate: bool = False,
        on_error: ErrorCallback | None = None,
    ) -> None:
        super().__init__(cache, tier=tier, ttl=ttl, revalidate=revalidate, on_error=on_error)
        self.key = key
        self.fetcher = fetcher
        self.data: T | None = None

    def snapshot(self) -> QueryState[T]:
        return QueryState(key=self.key, status=self.status, data=self.data, error=self.error)

    async def __aenter__(self) -> CachedQuery[T]:
        await self.load()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.dispose()

    async def load(self, *, skip_cache: bool = False) -> QueryState[T]:
        """Serve the key from cache, or fetch it on a miss.

        Args:
            skip_cache: Ignore any cached value and fetch unconditionally

        Returns:
            State after the load settled
        """
        key = self.key
        generation = self._begin()

        if not skip_cache:
            cached = self.tier.get(key)
            if cached is not None:
                self.data = cached
                self.status = QueryStatus.SUCCESS
                self._notify()
                if self.revalidate:
                    self._schedule(self._revalidate(key, generation))
                return self.snapshot()

        try:
            data = await self.fetcher()
        except Exception as exc:
            logger.debug("query %s failed: %s", key, exc)
            if self._is_current(generation):
                self.error = exc
                self.status = QueryStatus.ERROR
                self._notify()
                self._report_error(exc)
            return self.snapshot()

        self.tier.set(key, data, self.ttl)
        if self._is_current(generation):
            self.data = data
            self.status = QueryStatus.SUCCESS
            self._notify()
        return self.snapshot()

    async def _revalidate(self, key: str, generation: int) -> None:
        try:
            data = await self.fetcher()
        except Exception as exc:
            logger.debug("background revalidation of %s failed: %s", key, exc)
            if self._is_current(generation):
                self._report_error(exc)
            return

        self.tier.set(key, data, self.ttl)
        if self._is_current(generation):
            self.data = data
            self._notify()

    async def refetch(self) -> QueryState[T]:
        """Bypass the cache and fetch again, overwriting the cached value."""
        return await self.load(skip_cache=True)

    async def set_key(self, key: str, fetcher: Callable[[], Awaitable[T]] | None = None) -> QueryState[T]:
        """Switch to another key and load it.

        Data from the previous key is dropped immediately.
        """
        if fetcher is not None:
            self.fetcher = fetcher
        if key == self.key and self.status != QueryStatus.IDLE:
            return self.snapshot()
        self.key = key
        self.data = None
        return await self.load()


class CachedQueryMap(_BaseQuery, Generic[T]):
    """Multi-key cached query.

    All keys are resolved concurrently and cache-checked independently. If
    any key fails, ``error`` holds the first failure (in key order) while the
    keys that did resolve are still published in ``data_map``.
    """

    def __init__(
        self,
        cache: CacheContext,
        keys: Iterable[str],
        fetcher: Callable[[str], Awaitable[T]],
        *,
        tier: TierName = "memory",
        ttl: float = CacheExpiry.MEDIUM,
        revalidate: bool = False,
        on_error: ErrorCallback | None = None,
    ) -> None:
        super().__init__(cache, tier=tier, ttl=ttl, revalidate=revalidate, on_error=on_error)
        self.keys: tuple[str, ...] = tuple(keys)
        self.fetcher = fetcher
        self.data_map: dict[str, T] = {}

    def snapshot(self) -> QueryMapState[T]:
        return QueryMapState(
            keys=self.keys,
            status=self.status,
            data_map=dict(self.data_map),
            error=self.error,
        )

    async def __aenter__(self) -> CachedQueryMap[T]:
        await self.load()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.dispose()

    async def _resolve(self, key: str, skip_cache: bool, hits: list[str]) -> T:
        if not skip_cache:
            cached = self.tier.get(key)
            if cached is not None:
                hits.append(key)
                return cached

        data = await self.fetcher(key)
        self.tier.set(key, data, self.ttl)
        return data

    async def load(self, *, skip_cache: bool = False) -> QueryMapState[T]:
        keys = self.keys
        generation = self._begin()
        hits: list[str] = []

        results = await asyncio.gather(
            *(self._resolve(key, skip_cache, hits) for key in keys),
            return_exceptions=True,
        )
        if not self._is_current(generation):
            return self.snapshot()

        data_map = {k: v for k, v in self.data_map.items() if k in keys}
        first_error: BaseException | None = None
        for key, result in zip(keys, results):
            if isinstance(result, BaseException):
                logger.debug("query %s failed: %s", key, result)
                if first_error is None:
                    first_error = result
                self._report_error(result)
            else:
                data_map[key] = result

        self.data_map = data_map
        self.error = first_error
        self.status = QueryStatus.ERROR if first_error is not None else QueryStatus.SUCCESS
        self._notify()

        if self.revalidate:
            for key in hits:
                self._schedule(self._revalidate(key, generation))
        return self.snapshot()

    async def _revalidate(self, key: str, generation: int) -> None:
        try:
            data = await self.fetcher(key)
        except Exception as exc:
            logger.debug("background revalidation of %s failed: %s", key, exc)
            if self._is_current(generation):
                self._report_error(exc)
            return

        self.tier.set(key, data, self.ttl)
        if self._is_current(generation):
            self.data_map = {**self.data_map, key: data}
            self._notify()

    async def refetch(self) -> QueryMapState[T]:
        return await self.load(skip_cache=True)

    async def set_keys(
        self,
        keys: Iterable[str],
        fetcher: Callable[[str], Awaitable[T]] | None = None,
    ) -> QueryMapState[T]:
        if fetcher is not None:
            self.fetcher = fetcher
        keys = tuple(keys)
        if keys == self.keys and self.status != QueryStatus.IDLE:
            return self.snapshot()
        self.keys = keys
        return await self.load()
