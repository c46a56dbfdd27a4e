# tests/unit/cache/test_unit_cache_factory.py - v3
"""Tests for cache/cache_factory.py."""

from __future__ import annotations

from aicache.cache.cache_factory import cache_config_from_settings, create_response_cache
from aicache.config.settings import Settings
from aicache.storage.json_document_store import JsonDocumentStore


class TestCacheConfigFromSettings:
    def test_maps_fields(self):
        s = Settings(
            _env_file=None,
            cache_max_items=50,
            cache_default_ttl_s=60.0,
            cache_persist_size_threshold=10,
            cache_document_name="responses",
            cache_io_retries=0,
            cache_warmup_prompts=["one prompt", "two, with comma"],
        )
        config = cache_config_from_settings(s)
        assert config.max_items == 50
        assert config.default_ttl == 60.0
        assert config.durable_size_threshold == 10
        assert config.document_name == "responses"
        assert config.io_retries == 0
        assert config.warmup_prompts == ["one prompt", "two, with comma"]


class TestCreateResponseCache:
    def test_defaults_use_json_store(self):
        cache = create_response_cache()
        assert cache.durable is not None
        assert cache.config.max_items == 1000

    def test_memory_only_when_durable_disabled(self, store):
        s = Settings(_env_file=None, cache_durable_enabled=False)
        cache = create_response_cache(s, store=store)
        assert cache.durable is None

    def test_store_override(self, store):
        s = Settings(_env_file=None, cache_document_name="responses")
        cache = create_response_cache(s, store=store)
        assert cache.durable.document_name == "responses"

    def test_store_from_settings(self, tmp_path):
        s = Settings(_env_file=None, storage_root=tmp_path)
        cache = create_response_cache(s)
        assert cache.durable is not None
        assert isinstance(cache.durable._store, JsonDocumentStore)
