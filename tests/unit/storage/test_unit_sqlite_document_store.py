# tests/unit/storage/test_unit_sqlite_document_store.py - v2
"""Tests for storage/sqlite_document_store.py."""

from __future__ import annotations

import threading

import pytest

from aicache.storage.errors import MalformedDocumentError
from aicache.storage.sqlite_document_store import SqliteDocumentStore


@pytest.fixture
def store(tmp_path):
    s = SqliteDocumentStore(tmp_path / "test.db")
    yield s
    s.close()


class TestSqliteDocumentStore:
    @pytest.mark.asyncio
    async def test_missing_document_is_empty(self, store):
        assert await store.read("cache") == {}

    @pytest.mark.asyncio
    async def test_write_then_read(self, store):
        await store.write("cache", {"k1": {"data": [1, 2]}})
        assert await store.read("cache") == {"k1": {"data": [1, 2]}}

    @pytest.mark.asyncio
    async def test_upsert(self, store):
        await store.write("cache", {"a": 1})
        await store.write("cache", {"b": 2})
        assert await store.read("cache") == {"b": 2}
        assert await store.list_names() == ["cache"]

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.write("cache", {"a": 1})
        await store.delete("cache")
        assert await store.read("cache") == {}
        assert await store.list_names() == []

    @pytest.mark.asyncio
    async def test_malformed_body(self, store):
        store._conn.execute(
            "INSERT INTO documents (name, body) VALUES (?, ?)", ("cache", "nope")
        )
        store._conn.commit()
        with pytest.raises(MalformedDocumentError):
            await store.read("cache")

    @pytest.mark.asyncio
    async def test_persists_across_connections(self, tmp_path):
        first = SqliteDocumentStore(tmp_path / "shared.db")
        await first.write("cache", {"k": "v"})
        first.close()
        second = SqliteDocumentStore(tmp_path / "shared.db")
        assert await second.read("cache") == {"k": "v"}
        second.close()

    @pytest.mark.asyncio
    async def test_statements_run_off_event_loop_thread(self, store, monkeypatch):
        threads: list[int] = []
        original = store._execute_commit

        def tracking(sql, params):
            threads.append(threading.get_ident())
            original(sql, params)

        monkeypatch.setattr(store, "_execute_commit", tracking)
        await store.write("cache", {"a": 1})
        assert threads and threads[0] != threading.get_ident()
        assert await store.read("cache") == {"a": 1}
