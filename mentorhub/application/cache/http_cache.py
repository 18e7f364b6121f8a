"""Time-to-live key/value cache keyed by request signature."""

import time
from typing import Any, Callable, Dict, Optional

from .models import CacheEntry
from .statistics import CacheStatistics
from ...constants import DEFAULT_CACHE_TTL_SECONDS
from ...logging import debug, LogRecord, LogEvent


class HttpCache:
    """
    In-process TTL cache owned by a :class:`RequestClient`.

    Entries are immutable snapshots, so uncoordinated readers and writers are
    safe: concurrent writers to one key resolve as last write wins. Expiry is
    checked lazily on read; nothing sweeps the map in the background, stale
    entries are dropped when read or overwritten by the next ``put``.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._statistics = CacheStatistics()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def lookup(self, key: str, ttl_seconds: Optional[float] = None) -> Optional[CacheEntry]:
        """Return the live entry for ``key`` or ``None``.

        Args:
            key: Canonical request key
            ttl_seconds: Optional TTL overriding the one the entry was stored with
        """
        entry = self._entries.get(key)
        if entry is None:
            self._statistics.record_miss()
            return None

        if entry.is_expired(self._clock(), ttl_seconds):
            # Drop it only if no newer write replaced it meanwhile
            if self._entries.get(key) is entry:
                del self._entries[key]
            self._statistics.record_expiration()
            self._statistics.record_miss()
            debug(
                LogRecord(
                    event=LogEvent.CACHE_EVENT.value,
                    message="Cache entry expired",
                    data={"key": key},
                )
            )
            return None

        self._statistics.record_hit()
        return entry

    def get(self, key: str, ttl_seconds: Optional[float] = None) -> Optional[Any]:
        """Return the cached value, or ``None`` when absent or expired."""
        entry = self.lookup(key, ttl_seconds)
        return entry.value if entry is not None else None

    def put(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> CacheEntry:
        """Store ``value`` under ``key``, replacing any previous entry."""
        entry = CacheEntry(
            key=key,
            value=value,
            stored_at=self._clock(),
            ttl_seconds=self._ttl_seconds if ttl_seconds is None else ttl_seconds,
        )
        self._entries[key] = entry
        self._statistics.record_store()
        return entry

    def invalidate(self, key: str) -> bool:
        """Remove ``key``. Returns whether an entry was present."""
        removed = self._entries.pop(key, None) is not None
        if removed:
            self._statistics.record_invalidation()
        return removed

    def clear(self) -> None:
        count = len(self._entries)
        self._entries.clear()
        if count:
            self._statistics.record_invalidation(count)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def stats(self) -> Dict[str, Any]:
        stats = self._statistics.get_stats()
        stats["entries"] = len(self._entries)
        stats["ttl_seconds"] = self._ttl_seconds
        return stats
