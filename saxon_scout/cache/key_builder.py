from __future__ import annotations

import json
from typing import Any, Mapping


def _normalize(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {str(k): _normalize(v) for k, v in sorted(data.items(), key=lambda item: str(item[0]))}
    if isinstance(data, (list, tuple)):
        return [_normalize(item) for item in data]
    return data


def canonical_params(params: Mapping[str, Any] | None) -> str:
    """Serialize query params independently of key insertion order."""
    return json.dumps(_normalize(params or {}), sort_keys=True, separators=(",", ":"), default=str)


def build_cache_key(method: str, path: str, params: Mapping[str, Any] | None = None) -> str:
    return f"{method.upper()}:{path}:{canonical_params(params)}"
