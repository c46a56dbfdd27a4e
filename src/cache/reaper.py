# src/cache/reaper.py - v1
"""Background sweep purging expired entries from both tiers."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from aicache.cache.durable_tier import DurableTier
from aicache.cache.memory_tier import MemoryTier
from aicache.cache.statistics import StatisticsCollector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReapResult:
    """Entries removed by one sweep."""

    memory_expired: int = 0
    durable_expired: int = 0

    @property
    def total(self) -> int:
        return self.memory_expired + self.durable_expired


class Reaper:
    """Periodic expiry sweep, independent of request traffic.

    Args:
        memory: Memory tier to sweep.
        durable: Durable tier to sweep, or None for memory-only caches.
        clock: Time source returning POSIX seconds.
        interval: Seconds between sweeps.
        timeout: Upper bound on a single sweep.
        stats: Collector credited with expirations.
    """

    def __init__(
        self,
        memory: MemoryTier,
        durable: DurableTier | None,
        clock: Callable[[], float],
        interval: float = 300.0,
        timeout: float = 30.0,
        stats: StatisticsCollector | None = None,
    ) -> None:
        self._memory = memory
        self._durable = durable
        self._clock = clock
        self._interval = interval
        self._timeout = timeout
        self._stats = stats
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self) -> ReapResult:
        """Sweep both tiers once."""
        now = self._clock()
        memory_expired = self._memory.purge_expired(now)
        durable_expired = 0
        if self._durable is not None:
            durable_expired = await self._durable.purge_expired(now)

        result = ReapResult(memory_expired, durable_expired)
        if result.total:
            if self._stats is not None:
                self._stats.record_expirations(result.total)
            logger.debug(
                "Cache cleanup completed",
                extra={"data": {"memory": memory_expired, "durable": durable_expired}},
            )
        return result

    def start(self) -> None:
        """Schedule the sweep loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._loop(), name="aicache-reaper"
        )
        logger.debug("Cache reaper started (interval=%.0fs)", self._interval)

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.debug("Cache reaper stopped")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await asyncio.wait_for(self.run_once(), timeout=self._timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Cache cleanup exceeded %.1fs and was abandoned", self._timeout
                )
            except Exception:
                logger.exception("Cache cleanup failed")
