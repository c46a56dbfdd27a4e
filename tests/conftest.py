# tests/conftest.py - v1
"""Shared test fixtures for all unit and integration tests.

Provides a controllable clock, an in-memory recording document store and
ready-built caches. No external services; disk I/O only under tmp_path.
"""

from __future__ import annotations

import asyncio
import copy
import json
from pathlib import Path
from typing import Any

import pytest

from aicache.cache.response_cache import CacheConfig, ResponseCache
from aicache.storage.base_document_store import BaseDocumentStore
from aicache.storage.errors import MalformedDocumentError, StorageError

CACHEABLE_PROMPT = "Explain the CAP theorem in distributed systems"


# === Helpers ===


class FakeClock:
    """Manually advanced POSIX-seconds clock."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingDocumentStore(BaseDocumentStore):
    """In-memory document store that yields at every I/O call.

    Yielding between the read and the return lets concurrent tasks
    interleave exactly where a real backend would suspend.
    """

    def __init__(self) -> None:
        self.documents: dict[str, str] = {}
        self.read_calls = 0
        self.write_calls = 0
        self.fail_reads = 0
        self.fail_writes = 0

    async def read(self, name: str) -> dict[str, Any]:
        self.read_calls += 1
        await asyncio.sleep(0)
        if self.fail_reads:
            self.fail_reads -= 1
            raise StorageError(name, "read", OSError("disk unavailable"))
        raw = self.documents.get(name)
        if raw is None:
            return {}
        try:
            document = json.loads(raw)
        except json.JSONDecodeError as e:
            raise MalformedDocumentError(name, e) from e
        await asyncio.sleep(0)
        return copy.deepcopy(document)

    async def write(self, name: str, document: dict[str, Any]) -> None:
        self.write_calls += 1
        await asyncio.sleep(0)
        if self.fail_writes:
            self.fail_writes -= 1
            raise StorageError(name, "write", OSError("disk full"))
        self.documents[name] = json.dumps(document)

    async def delete(self, name: str) -> None:
        self.documents.pop(name, None)

    async def list_names(self) -> list[str]:
        return sorted(self.documents)

    def document(self, name: str = "cache") -> dict[str, Any]:
        """Decoded stored document, for assertions."""
        return json.loads(self.documents.get(name, "{}"))


# === FIXTURES ===


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> RecordingDocumentStore:
    return RecordingDocumentStore()


@pytest.fixture
def cache_config(clock: FakeClock) -> CacheConfig:
    """Small cache with instant retries and the fake clock."""
    return CacheConfig(
        max_items=10,
        io_retries=1,
        io_retry_delay=0.0,
        clock=clock,
    )


@pytest.fixture
def cache(store: RecordingDocumentStore, cache_config: CacheConfig) -> ResponseCache:
    return ResponseCache(store=store, config=cache_config)


@pytest.fixture
def tmp_store_dir(tmp_path: Path) -> Path:
    """Temporary durable store directory."""
    root = tmp_path / "store"
    root.mkdir()
    return root
