"""
In-process TTL cache for job results.

Entries expire after ttl_seconds measured on an injectable clock, so expiry
is testable without sleeping.
"""

import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

from stayscout.core.logging import get_logger

logger = get_logger(__name__)

V = TypeVar("V")


@dataclass
class _Entry(Generic[V]):
    value: V
    expires_at: float


class CacheStore(Generic[V]):
    """
    Key/value store with per-entry time-to-live.

    Args:
        ttl_seconds: Lifetime of an entry
        clock: Callable returning the current time in seconds
            (default: time.monotonic)
    """

    def __init__(self, ttl_seconds: float, clock: Optional[Callable[[], float]] = None):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock or time.monotonic
        self._entries: Dict[Any, _Entry[V]] = {}

    def get(self, key: Any) -> Optional[V]:
        """Return the cached value, or None if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() >= entry.expires_at:
            del self._entries[key]
            logger.debug(f"cache expired: {key}")
            return None
        return entry.value

    def set(self, key: Any, value: V) -> None:
        now = self._clock()
        self._sweep(now)
        self._entries[key] = _Entry(value=value, expires_at=now + self._ttl)

    def _sweep(self, now: float) -> None:
        expired = [k for k, e in self._entries.items() if now >= e.expires_at]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug(f"cache swept {len(expired)} expired entries")

    def invalidate(self, key: Any) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


def geo_cache_key(latitude: float, longitude: float, radius_km: float, keyword: str = "") -> Tuple:
    """Cache key for geo-scoped queries: lat|lon|radius|keyword."""
    return (round(latitude, 6), round(longitude, 6), float(radius_km), keyword or "")
