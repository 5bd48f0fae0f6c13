from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from saxon_scout.cache.base import CacheExpiry
from saxon_scout.cache.context import CacheContext
from saxon_scout.cache.metrics import CacheMetricsProtocol
from saxon_scout.cache.persistent import DEFAULT_PREFIX
from saxon_scout.cache.stores import FileStore, InMemoryStore, KeyValueStore, RedisStore


class CachePolicy(BaseModel):
    """How a client caches its GET requests.

    ``ttl`` is in milliseconds; ``CacheExpiry.PERMANENT`` disables expiry.
    """

    enabled: bool = True
    ttl: float = CacheExpiry.MEDIUM
    tier: Literal["memory", "persistent"] = "memory"

    def merged(self, override: CachePolicy | Mapping[str, Any] | None) -> CachePolicy:
        if override is None:
            return self
        if isinstance(override, CachePolicy):
            update = override.model_dump(exclude_unset=True)
        else:
            update = dict(override)
        return self.model_validate({**self.model_dump(), **update})


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SAXON_SCOUT_", extra="ignore")

    log_level: str = "INFO"
    local_api_url: str = "http://localhost:3000/api"
    tba_base_url: str = "https://www.thebluealliance.com/api/v3"
    tba_api_key: str | None = None
    first_base_url: str = "https://frc-api.firstinspires.org/v3.0"
    first_username: str | None = None
    first_password: str | None = None
    request_timeout: float = 30.0
    cache_prefix: str = DEFAULT_PREFIX
    cache_store: Literal["memory", "file", "redis"] = "file"
    cache_path: str = Field(default_factory=lambda: str(Path.home() / ".saxon_scout" / "cache.json"))
    redis_url: str | None = None
    sweep_interval_seconds: float = 300


def _resolve_env_token(value: Any) -> Any:
    if isinstance(value, str) and value.startswith("os.environ/"):
        env_name = value.split("/", 1)[1]
        return os.getenv(env_name)
    if isinstance(value, dict):
        return {k: _resolve_env_token(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_resolve_env_token(v) for v in value]
    return value


def load_settings(path: str | Path | None = None) -> Settings:
    """Build settings from the environment, overlaid with a YAML file if given."""
    if path is None:
        return Settings()

    cfg_path = Path(path)
    if not cfg_path.exists():
        return Settings()

    data = yaml.safe_load(cfg_path.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{cfg_path} must contain a mapping")
    overrides = {k: v for k, v in _resolve_env_token(data).items() if v is not None}
    return Settings(**overrides)


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging; defaults to the configured ``log_level``."""
    if level is None:
        level = get_settings().log_level
    logging.basicConfig(
        level=level if isinstance(level, int) else level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def build_store(settings: Settings) -> KeyValueStore:
    if settings.cache_store == "redis":
        if not settings.redis_url:
            raise ValueError("cache_store 'redis' requires redis_url")
        return RedisStore.from_url(settings.redis_url)
    if settings.cache_store == "file":
        return FileStore(settings.cache_path)
    return InMemoryStore()


def build_cache_context(
    settings: Settings,
    metrics: CacheMetricsProtocol | None = None,
) -> CacheContext:
    return CacheContext(
        store=build_store(settings),
        prefix=settings.cache_prefix,
        metrics=metrics,
        sweep_interval_seconds=settings.sweep_interval_seconds,
    )
