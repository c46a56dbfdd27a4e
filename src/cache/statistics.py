# src/cache/statistics.py - v1
"""Running cache counters."""

from __future__ import annotations

import threading

from aicache.cache.models import CacheStatistics


class StatisticsCollector:
    """Thread-safe, monotonically increasing cache counters.

    Each ``record_*`` call corresponds to exactly one logical event;
    evictions and expirations are counted per entry, never per batch.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._total_requests = 0
        self._uncacheable = 0
        self._expirations = 0
        self._durable_errors = 0

    def record_request(self) -> None:
        with self._lock:
            self._total_requests += 1

    def record_hit(self) -> None:
        with self._lock:
            self._hits += 1

    def record_miss(self, uncacheable: bool = False) -> None:
        """Count a miss; ``uncacheable`` marks a policy refusal."""
        with self._lock:
            self._misses += 1
            if uncacheable:
                self._uncacheable += 1

    def record_eviction(self, count: int = 1) -> None:
        with self._lock:
            self._evictions += count

    def record_expirations(self, count: int) -> None:
        with self._lock:
            self._expirations += count

    def record_durable_error(self) -> None:
        with self._lock:
            self._durable_errors += 1

    def snapshot(self, memory_items: int = 0, memory_bytes: int = 0) -> CacheStatistics:
        """Consistent view of all counters plus memory-tier footprint."""
        with self._lock:
            return CacheStatistics(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                total_requests=self._total_requests,
                uncacheable=self._uncacheable,
                expirations=self._expirations,
                durable_errors=self._durable_errors,
                memory_items=memory_items,
                memory_bytes=memory_bytes,
            )

    def reset(self) -> None:
        """Zero all counters (test isolation only)."""
        with self._lock:
            self._hits = self._misses = self._evictions = 0
            self._total_requests = self._uncacheable = 0
            self._expirations = self._durable_errors = 0
