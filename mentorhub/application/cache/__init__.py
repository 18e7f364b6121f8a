"""In-process TTL cache used by the outbound HTTP client."""

from .http_cache import HttpCache
from .models import CacheEntry
from .statistics import CacheStatistics

__all__ = ["HttpCache", "CacheEntry", "CacheStatistics"]
