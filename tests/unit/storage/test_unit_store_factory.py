# tests/unit/storage/test_unit_store_factory.py - v1
"""Tests for storage/store_factory.py."""

from __future__ import annotations

import pytest

from aicache.config.settings import Settings
from aicache.storage.json_document_store import JsonDocumentStore
from aicache.storage.sqlite_document_store import SqliteDocumentStore
from aicache.storage.store_factory import create_document_store


class TestCreateDocumentStore:
    def test_default_is_json(self):
        assert isinstance(create_document_store(), JsonDocumentStore)

    def test_json_root_from_settings(self, tmp_path):
        s = Settings(_env_file=None, storage_backend="json", storage_root=tmp_path)
        store = create_document_store(s)
        assert isinstance(store, JsonDocumentStore)
        assert store.root == tmp_path

    def test_sqlite(self, tmp_path):
        s = Settings(_env_file=None, storage_backend="sqlite", storage_root=tmp_path)
        store = create_document_store(s)
        assert isinstance(store, SqliteDocumentStore)
        assert (tmp_path / "aicache.db").exists()
        store.close()

    def test_redis_requires_url(self):
        s = Settings(_env_file=None, storage_backend="redis", storage_redis_url="")
        with pytest.raises(ValueError, match="STORAGE_REDIS_URL"):
            create_document_store(s)
