# src/cache/memory_tier.py - v1
"""Bounded in-process LRU tier.

Entries are kept in an OrderedDict in access order, oldest first, so the
least-recently-accessed entries are always at the front and eviction order
is deterministic. A single lock guards every operation; nothing awaits while
holding it, which keeps the tier safe under asyncio tasks and OS threads.
"""

from __future__ import annotations

import math
import threading
from collections import OrderedDict

from aicache.cache.models import CacheEntry

EVICTION_FRACTION = 0.1


class MemoryTier:
    """LRU map from cache key to CacheEntry.

    Parameters
    ----------
    capacity:
        Maximum resident entries. Exceeding it evicts
        ``ceil(capacity * 0.1)`` least-recently-accessed entries.
    """

    def __init__(self, capacity: int = 1000) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self._capacity = capacity
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def eviction_batch(self) -> int:
        return max(1, math.ceil(self._capacity * EVICTION_FRACTION))

    def get(self, key: str, now: float) -> CacheEntry | None:
        """Return the live entry for ``key`` and mark it recently used.

        Expired entries are reported as a miss and left for the reaper.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or not entry.is_live(now):
                return None
            entry.last_accessed_at = now
            self._entries.move_to_end(key)
            return entry

    def put(self, entry: CacheEntry) -> list[str]:
        """Insert or overwrite an entry.

        Returns:
            Keys evicted to get back within capacity (possibly empty).
        """
        with self._lock:
            self._entries[entry.key] = entry
            self._entries.move_to_end(entry.key)
            if len(self._entries) <= self._capacity:
                return []
            return self._evict_locked()

    def _evict_locked(self) -> list[str]:
        evicted: list[str] = []
        for _ in range(min(self.eviction_batch, len(self._entries))):
            key, _entry = self._entries.popitem(last=False)
            evicted.append(key)
        return evicted

    def purge_expired(self, now: float) -> int:
        """Remove every entry with ``expires_at <= now``."""
        with self._lock:
            expired = [k for k, e in self._entries.items() if not e.is_live(now)]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def live_size_bytes(self, now: float) -> int:
        """Sum of ``size_bytes`` over live entries."""
        with self._lock:
            return sum(e.size_bytes for e in self._entries.values() if e.is_live(now))

    def keys(self) -> list[str]:
        """Resident keys, least-recently-accessed first."""
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
