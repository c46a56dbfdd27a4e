# src/cache/durable_tier.py - v2
"""Durable tier: selected entries persisted in one document of the store.

The whole document is read, mutated and written back, so every mutation
(store, purge, clear) runs inside a single asyncio.Lock covering both the
read and the write. Lookups read without the lock; backends replace the
document atomically, so a lookup sees either the old or the new snapshot.

Every failure is absorbed here: lookups degrade to a miss and writes are
dropped, leaving the cache usable in memory-only mode.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError

from aicache.cache.models import CacheEntry, DurableRecord
from aicache.cache.statistics import StatisticsCollector
from aicache.storage.base_document_store import BaseDocumentStore
from aicache.storage.errors import MalformedDocumentError
from aicache.storage.retry import RetryConfig, StoreRetryExhausted, with_retry

logger = logging.getLogger(__name__)

DURABLE_MODEL_CLASSES: frozenset[str] = frozenset({"analysis", "review"})


class DurableTier:
    """Persists large or high-value entries so they survive restarts.

    Args:
        store: Backing document store.
        document_name: Name of the cache document; owned by this tier only.
        size_threshold: Entries larger than this many bytes are admitted.
        retry: Retry policy for store I/O.
        stats: Collector notified of failed durable operations.
    """

    def __init__(
        self,
        store: BaseDocumentStore,
        document_name: str = "cache",
        size_threshold: int = 1000,
        retry: RetryConfig | None = None,
        stats: StatisticsCollector | None = None,
    ) -> None:
        self._store = store
        self._document_name = document_name
        self._size_threshold = size_threshold
        self._retry = retry or RetryConfig()
        self._stats = stats
        self._write_lock = asyncio.Lock()

    @property
    def document_name(self) -> str:
        return self._document_name

    def admits(self, entry: CacheEntry) -> bool:
        """Admission policy: large payloads or expensive model classes."""
        return (
            entry.size_bytes > self._size_threshold
            or entry.model_class in DURABLE_MODEL_CLASSES
        )

    async def lookup(self, key: str, now: float) -> DurableRecord | None:
        """Return the live record for ``key``, or None.

        Stale records are ignored; purging them is the reaper's job.
        """
        try:
            document = await self._read_document()
        except StoreRetryExhausted as e:
            self._record_error()
            logger.error(
                "Durable cache read failed, treating as miss: %s", e,
                extra={"data": {"key": key}},
            )
            return None

        raw = document.get(key)
        if raw is None:
            return None
        record = _parse_record(key, raw)
        if record is None or not record.is_live(now):
            return None
        return record

    async def store(self, entry: CacheEntry) -> bool:
        """Write ``entry`` into the durable document.

        Returns:
            True if the document was written.
        """
        try:
            serialized = DurableRecord.from_entry(entry).model_dump(mode="json")
        except (PydanticSerializationError, TypeError, ValueError) as e:
            self._record_error()
            logger.error(
                "Durable cache entry not serializable, kept in memory only: %s", e,
                extra={"data": {"key": entry.key, "model_class": entry.model_class}},
            )
            return False

        async with self._write_lock:
            try:
                document = await self._read_document()
                document[entry.key] = serialized
                await self._write_document(document)
            except StoreRetryExhausted as e:
                self._record_error()
                logger.error(
                    "Durable cache write failed, entry kept in memory only: %s", e,
                    extra={"data": {"key": entry.key, "model_class": entry.model_class}},
                )
                return False
        logger.debug(
            "Cache set (durable)",
            extra={"data": {"key": entry.key, "model_class": entry.model_class}},
        )
        return True

    async def purge_expired(self, now: float) -> int:
        """Drop expired and unreadable records; write back only if any were dropped."""
        async with self._write_lock:
            try:
                document = await self._read_document()
                stale = [
                    key for key, raw in document.items()
                    if (record := _parse_record(key, raw)) is None
                    or not record.is_live(now)
                ]
                if not stale:
                    return 0
                for key in stale:
                    del document[key]
                await self._write_document(document)
            except StoreRetryExhausted as e:
                self._record_error()
                logger.error("Durable cache purge failed: %s", e)
                return 0
        return len(stale)

    async def clear(self) -> bool:
        """Replace the durable document with an empty one."""
        async with self._write_lock:
            try:
                await self._write_document({})
            except StoreRetryExhausted as e:
                self._record_error()
                logger.error("Failed to clear durable cache: %s", e)
                return False
        return True

    async def records(self) -> dict[str, DurableRecord]:
        """All readable records in the document (expired included)."""
        document = await self._read_document()
        parsed: dict[str, DurableRecord] = {}
        for key, raw in document.items():
            record = _parse_record(key, raw)
            if record is not None:
                parsed[key] = record
        return parsed

    async def _read_document(self) -> dict[str, Any]:
        try:
            return await with_retry(
                self._store.read, self._document_name,
                operation="read", config=self._retry,
            )
        except MalformedDocumentError as e:
            logger.warning(
                "Durable cache document is malformed, treating as empty: %s", e
            )
            return {}

    async def _write_document(self, document: dict[str, Any]) -> None:
        """Write the document; cancellation waits for an in-flight write.

        Callers hold the write lock. A backend write may keep running in a
        worker thread after its awaiting task is cancelled, so the lock must
        not be released until that write has landed.
        """
        task = asyncio.ensure_future(with_retry(
            self._store.write, self._document_name, document,
            operation="write", config=self._retry,
        ))
        try:
            await asyncio.shield(task)
        except asyncio.CancelledError:
            try:
                await task
            except Exception as e:
                self._record_error()
                logger.error("Durable cache write failed after cancellation: %s", e)
            raise

    def _record_error(self) -> None:
        if self._stats is not None:
            self._stats.record_durable_error()


def _parse_record(key: str, raw: Any) -> DurableRecord | None:
    try:
        return DurableRecord.model_validate(raw)
    except ValidationError as e:
        logger.warning(
            "Skipping malformed durable record %s: %s", key, e.error_count()
        )
        return None
