"""Durable key-value stores backing the persistent cache tier.

A store holds raw strings under string keys and is shared: several caches
(or unrelated code) may keep keys in the same store, so callers own only the
keys carrying their prefix.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

from redis import Redis, RedisError

from saxon_scout.exceptions import StorageError, StorageFull

logger = logging.getLogger(__name__)

_GLOB_SPECIAL = frozenset("*?[]\\^")


class KeyValueStore(ABC):
    @abstractmethod
    def get_item(self, key: str) -> str | None:
        raise NotImplementedError

    @abstractmethod
    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def remove_item(self, key: str) -> None:
        raise NotImplementedError

    def remove_items(self, keys: list[str]) -> None:
        """Remove several keys; backends override this to batch the write."""
        for key in keys:
            self.remove_item(key)

    @abstractmethod
    def keys(self, prefix: str = "") -> list[str]:
        raise NotImplementedError


class InMemoryStore(KeyValueStore):
    """Dict-backed store with an optional byte quota."""

    def __init__(self, max_bytes: int | None = None) -> None:
        self.max_bytes = max_bytes
        self._items: dict[str, str] = {}

    def _used_bytes(self) -> int:
        return sum(len(k) + len(v) for k, v in self._items.items())

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        if self.max_bytes is not None:
            current = self._items.get(key)
            used = self._used_bytes()
            if current is not None:
                used -= len(key) + len(current)
            if used + len(key) + len(value) > self.max_bytes:
                raise StorageFull(f"quota of {self.max_bytes} bytes exceeded", key=key)
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._items if k.startswith(prefix)]


class FileStore(KeyValueStore):
    """Store persisted as a single JSON object on disk.

    The file is read once at construction and rewritten atomically after
    every mutation.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._items: dict[str, str] = self._load()

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("cache store %s unreadable, starting empty: %s", self.path, exc)
            return {}
        if not isinstance(payload, dict):
            logger.warning("cache store %s is not a JSON object, starting empty", self.path)
            return {}
        return {str(k): v for k, v in payload.items() if isinstance(v, str)}

    def _flush(self, items: dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(items, handle)
                os.replace(tmp_path, self.path)
            except BaseException:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_path)
                raise
        except OSError as exc:
            raise StorageError(f"failed to write {self.path}: {exc}") from exc

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        items = dict(self._items)
        items[key] = value
        self._flush(items)
        self._items = items

    def remove_item(self, key: str) -> None:
        self.remove_items([key])

    def remove_items(self, keys: list[str]) -> None:
        doomed = {k for k in keys if k in self._items}
        if not doomed:
            return
        items = {k: v for k, v in self._items.items() if k not in doomed}
        self._flush(items)
        self._items = items

    def keys(self, prefix: str = "") -> list[str]:
        return [k for k in self._items if k.startswith(prefix)]


def _escape_glob(text: str) -> str:
    return "".join(f"\\{ch}" if ch in _GLOB_SPECIAL else ch for ch in text)


class RedisStore(KeyValueStore):
    """Store backed by a synchronous Redis client."""

    def __init__(self, redis_client: Redis) -> None:
        self.redis = redis_client

    @classmethod
    def from_url(cls, url: str) -> RedisStore:
        return cls(Redis.from_url(url, decode_responses=True))

    def get_item(self, key: str) -> str | None:
        try:
            raw = self.redis.get(key)
        except RedisError as exc:
            raise StorageError(f"redis get failed: {exc}", key=key) from exc
        if isinstance(raw, bytes):
            return raw.decode("utf-8")
        return raw

    def set_item(self, key: str, value: str) -> None:
        try:
            self.redis.set(key, value)
        except RedisError as exc:
            if "OOM" in str(exc):
                raise StorageFull(f"redis out of memory: {exc}", key=key) from exc
            raise StorageError(f"redis set failed: {exc}", key=key) from exc

    def remove_item(self, key: str) -> None:
        try:
            self.redis.delete(key)
        except RedisError as exc:
            raise StorageError(f"redis delete failed: {exc}", key=key) from exc

    def remove_items(self, keys: list[str]) -> None:
        if not keys:
            return
        try:
            self.redis.delete(*keys)
        except RedisError as exc:
            raise StorageError(f"redis delete failed: {exc}") from exc

    def keys(self, prefix: str = "") -> list[str]:
        try:
            found = list(self.redis.scan_iter(match=f"{_escape_glob(prefix)}*"))
        except RedisError as exc:
            raise StorageError(f"redis scan failed: {exc}") from exc
        keys = [k.decode("utf-8") if isinstance(k, bytes) else k for k in found]
        return [k for k in keys if k.startswith(prefix)]
