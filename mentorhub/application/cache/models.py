"""Data models for the cache module."""

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class CacheEntry:
    """An immutable snapshot of a cached value.

    ``ttl_seconds`` is the lifetime the entry was stored with; a reader may
    override it with its own TTL.
    """

    key: str
    value: Any
    stored_at: float
    ttl_seconds: float

    def is_expired(self, now: float, ttl_seconds: Optional[float] = None) -> bool:
        """Check whether ``now - stored_at`` has reached the TTL."""
        ttl = self.ttl_seconds if ttl_seconds is None else ttl_seconds
        return now - self.stored_at >= ttl
