from __future__ import annotations

from typing import Protocol

from prometheus_client import CollectorRegistry, Counter

CACHE_REGISTRY = CollectorRegistry()


def get_cache_registry() -> CollectorRegistry:
    return CACHE_REGISTRY


def _build_counters(registry: CollectorRegistry) -> tuple[Counter, Counter, Counter, Counter]:
    hits = Counter(
        "saxon_scout_cache_hit_total",
        "Total cache hits",
        ["tier"],
        registry=registry,
    )
    misses = Counter(
        "saxon_scout_cache_miss_total",
        "Total cache misses",
        ["tier"],
        registry=registry,
    )
    writes = Counter(
        "saxon_scout_cache_write_total",
        "Total cache writes",
        ["tier"],
        registry=registry,
    )
    errors = Counter(
        "saxon_scout_cache_error_total",
        "Total recovered cache faults",
        ["tier", "operation"],
        registry=registry,
    )
    return hits, misses, writes, errors


# Registered once; every default PrometheusCacheMetrics shares these.
(
    saxon_scout_cache_hit_metric,
    saxon_scout_cache_miss_metric,
    saxon_scout_cache_write_metric,
    saxon_scout_cache_error_metric,
) = _build_counters(get_cache_registry())


class CacheMetricsProtocol(Protocol):
    def hit(self, *, tier: str) -> None: ...

    def miss(self, *, tier: str) -> None: ...

    def write(self, *, tier: str) -> None: ...

    def error(self, *, tier: str, operation: str) -> None: ...


class NoopCacheMetrics:
    def hit(self, *, tier: str) -> None:
        return None

    def miss(self, *, tier: str) -> None:
        return None

    def write(self, *, tier: str) -> None:
        return None

    def error(self, *, tier: str, operation: str) -> None:
        return None


class PrometheusCacheMetrics:
    """Cache counters on the package registry, or on a caller-owned one."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        if registry is None or registry is CACHE_REGISTRY:
            self._hits = saxon_scout_cache_hit_metric
            self._misses = saxon_scout_cache_miss_metric
            self._writes = saxon_scout_cache_write_metric
            self._errors = saxon_scout_cache_error_metric
        else:
            self._hits, self._misses, self._writes, self._errors = _build_counters(registry)

    def hit(self, *, tier: str) -> None:
        self._hits.labels(tier=tier).inc()

    def miss(self, *, tier: str) -> None:
        self._misses.labels(tier=tier).inc()

    def write(self, *, tier: str) -> None:
        self._writes.labels(tier=tier).inc()

    def error(self, *, tier: str, operation: str) -> None:
        self._errors.labels(tier=tier, operation=operation).inc()
