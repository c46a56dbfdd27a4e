# tests/integration/conftest.py - v8
"""Shared fixtures for integration tests against real on-disk backends.

The JSON and SQLite stores need no external services. Redis tests run only
when AICACHE_TEST_REDIS_URL points at a reachable server.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from aicache.storage.base_document_store import BaseDocumentStore
from aicache.storage.json_document_store import JsonDocumentStore
from aicache.storage.sqlite_document_store import SqliteDocumentStore


def pytest_configure(config):
    config.addinivalue_line("markers", "redis: marks tests requiring a Redis server")


@pytest.fixture(params=["json", "sqlite"])
def disk_store(request, tmp_path: Path) -> BaseDocumentStore:
    """Each on-disk backend in turn, rooted under tmp_path."""
    if request.param == "json":
        store: BaseDocumentStore = JsonDocumentStore(tmp_path / "store")
    else:
        store = SqliteDocumentStore(tmp_path / "store" / "aicache.db")
    yield store
    store.close()


@pytest.fixture
def redis_url() -> str:
    url = os.environ.get("AICACHE_TEST_REDIS_URL", "")
    if not url:
        pytest.skip("AICACHE_TEST_REDIS_URL not set")
    pytest.importorskip("redis")
    return url
