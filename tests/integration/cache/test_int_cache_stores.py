# tests/integration/cache/test_int_cache_stores.py - v3
"""Integration tests: ResponseCache over the JSON and SQLite backends.

No external services required.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import pytest

from aicache.cache.cache_factory import create_response_cache
from aicache.cache.fingerprint import derive_key
from aicache.cache.response_cache import CacheConfig, ResponseCache
from aicache.config.settings import Settings
from aicache.storage.json_document_store import JsonDocumentStore

pytestmark = pytest.mark.integration

CAP = "Explain the CAP theorem in distributed systems"
PROMPTS = [f"Review module number {i} for thread safety issues" for i in range(20)]


def _config(clock) -> CacheConfig:
    return CacheConfig(max_items=50, io_retry_delay=0.0, clock=clock)


class TestPersistence:
    @pytest.mark.asyncio
    async def test_restart_recovers_durable_entries(self, disk_store, clock):
        first = ResponseCache(disk_store, _config(clock))
        await first.set(CAP, "analysis", {"temperature": 0.3}, {"verdict": "ok"})
        await first.set(CAP, "main", {}, "small answer")

        second = ResponseCache(disk_store, _config(clock))
        assert await second.get(CAP, "analysis", {"temperature": 0.3}) == {"verdict": "ok"}
        assert await second.get(CAP, "main", {}) is None

    @pytest.mark.asyncio
    async def test_concurrent_sets_all_persisted(self, disk_store, clock):
        cache = ResponseCache(disk_store, _config(clock))
        await asyncio.gather(*(cache.set(p, "review", {}, f"r{i}") for i, p in enumerate(PROMPTS)))
        document = await disk_store.read("cache")
        assert set(document) == {derive_key(p, "review") for p in PROMPTS}

    @pytest.mark.asyncio
    async def test_cleanup_rewrites_document(self, disk_store, clock):
        cache = ResponseCache(disk_store, _config(clock))
        await cache.set(PROMPTS[0], "review", {}, "old")
        clock.advance(12 * 3600.0)
        await cache.set(PROMPTS[1], "review", {}, "new")
        clock.advance(12 * 3600.0)

        result = await cache.cleanup()
        assert result.durable_expired == 1
        assert set(await disk_store.read("cache")) == {derive_key(PROMPTS[1], "review")}

    @pytest.mark.asyncio
    async def test_clear(self, disk_store, clock):
        cache = ResponseCache(disk_store, _config(clock))
        await cache.set(CAP, "review", {}, "lgtm")
        await cache.clear()
        assert await disk_store.read("cache") == {}


class TestJsonDocumentFormat:
    @pytest.mark.asyncio
    async def test_record_shape(self, tmp_path: Path, clock):
        store = JsonDocumentStore(tmp_path)
        cache = ResponseCache(store, _config(clock))
        await cache.set(CAP, "review", {}, "lgtm")

        raw = json.loads((tmp_path / "cache.json").read_text(encoding="utf-8"))
        record = raw[derive_key(CAP, "review")]
        assert record == {
            "data": "lgtm",
            "model_class": "review",
            "cached_at": clock(),
            "expires_at": clock() + 24 * 3600.0,
        }

    @pytest.mark.asyncio
    async def test_corrupted_file_recovers(self, tmp_path: Path, clock):
        (tmp_path / "cache.json").write_text("{truncated", encoding="utf-8")
        cache = ResponseCache(JsonDocumentStore(tmp_path), _config(clock))
        assert await cache.get(CAP, "review", {}) is None
        await cache.set(CAP, "review", {}, "lgtm")
        raw = json.loads((tmp_path / "cache.json").read_text(encoding="utf-8"))
        assert derive_key(CAP, "review") in raw


class TestFactory:
    @pytest.mark.asyncio
    async def test_sqlite_from_settings(self, tmp_path: Path):
        settings = Settings(_env_file=None, storage_backend="sqlite", storage_root=tmp_path)
        cache = create_response_cache(settings)
        await cache.set(CAP, "review", {}, "lgtm")
        assert (tmp_path / "aicache.db").exists()
        assert await cache.get(CAP, "review", {}) == "lgtm"

    @pytest.mark.asyncio
    async def test_context_manager_lifecycle(self, tmp_path: Path):
        settings = Settings(_env_file=None, storage_root=tmp_path)
        async with create_response_cache(settings) as cache:
            await cache.set(CAP, "review", {}, "lgtm")
            assert cache.reaper.running
        assert (tmp_path / "cache.json").exists()
