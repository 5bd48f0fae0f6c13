from __future__ import annotations

import re

import pytest
from redis import RedisError

from saxon_scout.cache import CacheContext, InMemoryStore

START_MS = 1_700_000_000_000.0


class FakeClock:
    def __init__(self, start: float = START_MS) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def redis_glob_to_regex(pattern: str) -> re.Pattern[str]:
    parts = []
    chars = iter(pattern)
    for ch in chars:
        if ch == "\\":
            parts.append(re.escape(next(chars, "\\")))
        elif ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        elif ch == "[":
            body = []
            for member in chars:
                if member == "]":
                    break
                body.append(member)
            negate = body[:1] == ["^"]
            if negate:
                body = body[1:]
            members = "".join(re.escape(c) for c in body)
            parts.append(f"[{'^' if negate else ''}{members}]")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts) + r"\Z", re.DOTALL)


class FakeRedis:
    def __init__(self) -> None:
        self.store: dict[str, str] = {}
        self.fail_with: str | None = None
        self.delete_calls = 0

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise RedisError(self.fail_with)

    def get(self, key: str):
        self._maybe_fail()
        return self.store.get(key)

    def set(self, key: str, value: str):
        self._maybe_fail()
        self.store[key] = value
        return True

    def delete(self, *keys: str):
        self._maybe_fail()
        self.delete_calls += 1
        removed = 0
        for key in keys:
            if self.store.pop(key, None) is not None:
                removed += 1
        return removed

    def scan_iter(self, match: str | None = None):
        self._maybe_fail()
        regex = redis_glob_to_regex(match) if match is not None else None
        for key in list(self.store):
            if regex is None or regex.match(key):
                yield key


class RecordingMetrics:
    def __init__(self) -> None:
        self.events: list[tuple[str, str]] = []

    def hit(self, *, tier: str) -> None:
        self.events.append(("hit", tier))

    def miss(self, *, tier: str) -> None:
        self.events.append(("miss", tier))

    def write(self, *, tier: str) -> None:
        self.events.append(("write", tier))

    def error(self, *, tier: str, operation: str) -> None:
        self.events.append(("error", f"{tier}:{operation}"))


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture
def cache(store, clock, metrics) -> CacheContext:
    return CacheContext(store=store, clock=clock, metrics=metrics)


@pytest.fixture
def fake_redis() -> FakeRedis:
    return FakeRedis()
