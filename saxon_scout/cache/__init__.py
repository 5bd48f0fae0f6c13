"""Two-tier caching system for Saxon Scout."""

from saxon_scout.cache.base import CacheEntry, CacheExpiry, CacheTier, now_ms
from saxon_scout.cache.context import CacheContext, CacheSweeper, TierName
from saxon_scout.cache.key_builder import build_cache_key, canonical_params
from saxon_scout.cache.memory import MemoryCache
from saxon_scout.cache.metrics import NoopCacheMetrics, PrometheusCacheMetrics
from saxon_scout.cache.persistent import DEFAULT_PREFIX, CacheResult, PersistentCache
from saxon_scout.cache.stores import FileStore, InMemoryStore, KeyValueStore, RedisStore

__all__ = [
    "CacheContext",
    "CacheEntry",
    "CacheExpiry",
    "CacheResult",
    "CacheSweeper",
    "CacheTier",
    "DEFAULT_PREFIX",
    "FileStore",
    "InMemoryStore",
    "KeyValueStore",
    "MemoryCache",
    "NoopCacheMetrics",
    "PersistentCache",
    "PrometheusCacheMetrics",
    "RedisStore",
    "TierName",
    "build_cache_key",
    "canonical_params",
    "now_ms",
]
