"""Base cache types shared by both cache tiers."""

import math
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Optional

Clock = Callable[[], float]


def now_ms() -> float:
    """Current wall clock time in milliseconds since the epoch."""
    return time.time() * 1000


class CacheExpiry:
    """Named expiry durations in milliseconds.

    These are policy defaults; both tiers accept any duration.
    """

    SHORT = 5 * 60 * 1000
    MEDIUM = 30 * 60 * 1000
    LONG = 24 * 60 * 60 * 1000
    PERMANENT = math.inf


def is_permanent(expiry: float) -> bool:
    return expiry == CacheExpiry.PERMANENT


@dataclass
class CacheEntry:
    """Cache entry.

    Attributes:
        data: Cached payload
        timestamp: Write time in milliseconds since the epoch
        expiry: Lifetime in milliseconds, or ``CacheExpiry.PERMANENT``
    """

    data: Any
    timestamp: float
    expiry: float = CacheExpiry.MEDIUM

    def is_valid(self, now: float) -> bool:
        """Check whether the entry may still be served at ``now``.

        Args:
            now: Read time in milliseconds since the epoch

        Returns:
            True if the entry has not expired
        """
        return is_permanent(self.expiry) or now - self.timestamp <= self.expiry

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON-safe storage form.

        ``PERMANENT`` is written as ``null`` so the document stays strict JSON.
        """
        return {
            "data": self.data,
            "timestamp": self.timestamp,
            "expiry": None if is_permanent(self.expiry) else self.expiry,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheEntry":
        """Create from the storage form.

        Raises:
            KeyError, TypeError, ValueError: If the document is malformed
        """
        expiry = data["expiry"]
        return cls(
            data=data["data"],
            timestamp=float(data["timestamp"]),
            expiry=CacheExpiry.PERMANENT if expiry is None else float(expiry),
        )


class CacheTier(ABC):
    """Abstract key -> entry store with per-entry expiry."""

    name: str = ""

    def __init__(self, clock: Optional[Clock] = None) -> None:
        """Initialize the tier.

        Args:
            clock: Millisecond clock, defaults to the wall clock
        """
        self._clock = clock or now_ms

    def now(self) -> float:
        return self._clock()

    @abstractmethod
    def get(self, key: str) -> Any:
        """Get a value, or None if absent or expired."""
        pass

    @abstractmethod
    def set(self, key: str, data: Any, expiry: float = CacheExpiry.MEDIUM) -> None:
        """Store a value, overwriting any previous entry."""
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove an entry if present."""
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry owned by this tier."""
        pass

    @abstractmethod
    def clear_expired(self) -> int:
        """Remove every expired entry.

        Returns:
            Number of entries removed
        """
        pass

    @property
    @abstractmethod
    def size(self) -> int:
        """Entry count, including expired entries not yet swept."""
        pass

    def __len__(self) -> int:
        return self.size
