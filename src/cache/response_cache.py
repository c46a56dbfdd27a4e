# src/cache/response_cache.py - v1
"""Two-tier AI response cache.

Callers look results up by (prompt, model_class, options); on a miss they
produce the result themselves and store it back. The cache never invokes a
model. Lookups check the memory tier, then the durable tier, promoting
durable hits into memory. Durable I/O failures never reach the caller.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from aicache.cache.durable_tier import DurableTier
from aicache.cache.fingerprint import derive_key
from aicache.cache.memory_tier import MemoryTier
from aicache.cache.models import CacheEntry, CacheStatistics, OptionsLike, payload_size
from aicache.cache.policy import evaluate_cacheability, select_ttl
from aicache.cache.reaper import Reaper, ReapResult
from aicache.cache.statistics import StatisticsCollector
from aicache.storage.base_document_store import BaseDocumentStore
from aicache.storage.retry import RetryConfig

logger = logging.getLogger(__name__)


@dataclass
class CacheConfig:
    """Construction-time cache configuration, static for the process lifetime."""

    max_items: int = 1000
    default_ttl: float = 3600.0
    cleanup_interval: float = 300.0
    cleanup_timeout: float = 30.0
    durable_size_threshold: int = 1000
    document_name: str = "cache"
    io_retries: int = 2
    io_retry_delay: float = 0.05
    warmup_prompts: list[str] = field(default_factory=list)
    clock: Callable[[], float] = time.time


class ResponseCache:
    """Memory + durable cache for model responses.

    Args:
        store: Durable document store, or None for a memory-only cache.
        config: Cache configuration.
    """

    def __init__(
        self,
        store: BaseDocumentStore | None = None,
        config: CacheConfig | None = None,
    ) -> None:
        self._config = config or CacheConfig()
        self._clock = self._config.clock
        self._stats = StatisticsCollector()
        self._memory = MemoryTier(self._config.max_items)
        self._durable: DurableTier | None = None
        if store is not None:
            self._durable = DurableTier(
                store,
                document_name=self._config.document_name,
                size_threshold=self._config.durable_size_threshold,
                retry=RetryConfig(
                    max_retries=self._config.io_retries,
                    base_delay_s=self._config.io_retry_delay,
                ),
                stats=self._stats,
            )
        self._reaper = Reaper(
            self._memory,
            self._durable,
            clock=self._clock,
            interval=self._config.cleanup_interval,
            timeout=self._config.cleanup_timeout,
            stats=self._stats,
        )
        logger.info(
            "Response cache initialized",
            extra={"data": {
                "max_items": self._config.max_items,
                "default_ttl": self._config.default_ttl,
                "durable": self._durable is not None,
            }},
        )

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def memory(self) -> MemoryTier:
        return self._memory

    @property
    def durable(self) -> DurableTier | None:
        return self._durable

    @property
    def reaper(self) -> Reaper:
        return self._reaper

    # --- Lifecycle ---

    async def start(self) -> None:
        """Start the background reaper."""
        self._reaper.start()

    async def close(self) -> None:
        """Stop the background reaper."""
        await self._reaper.stop()

    async def __aenter__(self) -> ResponseCache:
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    # --- Lookup / store ---

    async def get(
        self, prompt: str, model_class: str, options: OptionsLike = None
    ) -> Any | None:
        """Return the cached result, or None on miss.

        Raises:
            TypeError: If ``prompt`` is not a string.
        """
        _check_prompt(prompt)
        self._stats.record_request()

        decision = evaluate_cacheability(prompt, model_class, options)
        if not decision.cacheable:
            self._stats.record_miss(uncacheable=True)
            return None

        key = derive_key(prompt, model_class, options)
        now = self._clock()

        entry = self._memory.get(key, now)
        if entry is not None:
            self._stats.record_hit()
            logger.debug(
                "Cache hit (memory)",
                extra={"data": {"key": key, "model_class": model_class}},
            )
            return entry.data

        if self._durable is not None:
            record = await self._durable.lookup(key, now)
            if record is not None:
                self._stats.record_hit()
                self._admit_to_memory(record.to_entry(key, self._clock()))
                logger.debug(
                    "Cache hit (durable)",
                    extra={"data": {"key": key, "model_class": model_class}},
                )
                return record.data

        self._stats.record_miss()
        return None

    async def set(
        self, prompt: str, model_class: str, options: OptionsLike, data: Any
    ) -> None:
        """Store a result if the request is cacheable. Best effort."""
        _check_prompt(prompt)
        if not evaluate_cacheability(prompt, model_class, options).cacheable:
            return

        key = derive_key(prompt, model_class, options)
        ttl = select_ttl(prompt, model_class, default_ttl=self._config.default_ttl)
        now = self._clock()
        entry = CacheEntry(
            key=key,
            data=data,
            model_class=model_class,
            created_at=now,
            expires_at=now + ttl,
            last_accessed_at=now,
            size_bytes=payload_size(data),
        )

        self._admit_to_memory(entry)
        logger.debug(
            "Cache set (memory)",
            extra={"data": {"key": key, "model_class": model_class, "ttl": ttl}},
        )

        if self._durable is not None and self._durable.admits(entry):
            await self._durable.store(entry)

    async def get_or_compute(
        self,
        prompt: str,
        model_class: str,
        options: OptionsLike,
        producer: Callable[[], Awaitable[Any]],
        use_cache: bool = True,
    ) -> Any:
        """Return a cached result or await ``producer`` and cache its result.

        Empty results (None, "", empty containers) are returned but not stored.
        """
        if not use_cache:
            return await producer()

        cached = await self.get(prompt, model_class, options)
        if cached is not None:
            return cached

        result = await producer()
        if result:
            await self.set(prompt, model_class, options, result)
        return result

    def _admit_to_memory(self, entry: CacheEntry) -> None:
        evicted = self._memory.put(entry)
        if evicted:
            self._stats.record_eviction(len(evicted))
            logger.debug(
                "Cache LRU eviction completed", extra={"data": {"evicted": len(evicted)}}
            )

    # --- Maintenance ---

    def stats(self) -> CacheStatistics:
        """Snapshot of counters and memory-tier footprint."""
        now = self._clock()
        return self._stats.snapshot(
            memory_items=len(self._memory),
            memory_bytes=self._memory.live_size_bytes(now),
        )

    async def cleanup(self) -> ReapResult:
        """Run one reaper sweep immediately."""
        return await self._reaper.run_once()

    async def clear(self) -> None:
        """Empty both tiers. Counters are kept."""
        self._memory.clear()
        if self._durable is not None:
            await self._durable.clear()
        logger.info("All cache cleared")

    def warmup(self, prompts: list[str] | None = None) -> list[str]:
        """Derive and log keys for representative prompts.

        Populates nothing: without a model call there is no data to warm with.
        Keys use the "main" model class and default options.
        """
        all_prompts = [*(prompts or []), *self._config.warmup_prompts]
        logger.info("Starting cache warmup", extra={"data": {"prompts": len(all_prompts)}})
        keys: list[str] = []
        for prompt in all_prompts:
            key = derive_key(prompt, "main")
            keys.append(key)
            logger.debug(
                "Warmup cache key generated",
                extra={"data": {"key": key, "prompt": prompt[:50]}},
            )
        logger.info("Cache warmup completed")
        return keys

    def reset_stats(self) -> None:
        """Zero the counters (test isolation only)."""
        self._stats.reset()


def _check_prompt(prompt: object) -> None:
    if not isinstance(prompt, str):
        raise TypeError(f"prompt must be str, got {type(prompt).__name__}")
