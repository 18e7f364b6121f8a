"""Cache statistics tracking and reporting."""

from typing import Dict, Any
import time


class CacheStatistics:
    """Tracks and manages cache performance statistics."""

    def __init__(self) -> None:
        self.cache_hits = 0
        self.cache_misses = 0
        self.expirations = 0
        self.invalidations = 0
        self.stores = 0
        self.start_time = time.time()

    def record_hit(self) -> None:
        self.cache_hits += 1

    def record_miss(self) -> None:
        self.cache_misses += 1

    def record_expiration(self) -> None:
        """Record an entry found stale on read."""
        self.expirations += 1

    def record_invalidation(self, count: int = 1) -> None:
        self.invalidations += count

    def record_store(self) -> None:
        self.stores += 1

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.cache_hits + self.cache_misses
        if total == 0:
            return 0.0
        return self.cache_hits / total

    @property
    def uptime_seconds(self) -> float:
        return time.time() - self.start_time

    def get_stats(self) -> Dict[str, Any]:
        """Get all statistics as a dictionary."""
        return {
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "hit_rate": round(self.hit_rate, 3),
            "expirations": self.expirations,
            "invalidations": self.invalidations,
            "stores": self.stores,
            "uptime_seconds": round(self.uptime_seconds, 1),
        }

    def reset(self) -> None:
        """Reset all statistics."""
        self.cache_hits = 0
        self.cache_misses = 0
        self.expirations = 0
        self.invalidations = 0
        self.stores = 0
        self.start_time = time.time()
