# src/cache/cache_factory.py - v3
"""Factory: build a ResponseCache from settings."""

from __future__ import annotations

from aicache.cache.response_cache import CacheConfig, ResponseCache
from aicache.config.settings import Settings
from aicache.storage.base_document_store import BaseDocumentStore
from aicache.storage.store_factory import create_document_store


def cache_config_from_settings(settings: Settings) -> CacheConfig:
    """Map CACHE_* settings onto a CacheConfig."""
    return CacheConfig(
        max_items=settings.cache_max_items,
        default_ttl=settings.cache_default_ttl_s,
        cleanup_interval=settings.cache_cleanup_interval_s,
        cleanup_timeout=settings.cache_cleanup_timeout_s,
        durable_size_threshold=settings.cache_persist_size_threshold,
        document_name=settings.cache_document_name,
        io_retries=settings.cache_io_retries,
        io_retry_delay=settings.cache_io_retry_delay_s,
        warmup_prompts=list(settings.cache_warmup_prompts),
    )


def create_response_cache(
    settings: Settings | None = None,
    store: BaseDocumentStore | None = None,
) -> ResponseCache:
    """Instantiate the configured response cache.

    Args:
        settings: Application settings. Defaults to built-in defaults.
        store: Durable store override; built from settings when omitted.

    Returns:
        ResponseCache, memory-only when CACHE_DURABLE_ENABLED is false.
    """
    settings = settings or Settings(_env_file=None)  # type: ignore[call-arg]
    config = cache_config_from_settings(settings)
    if not settings.cache_durable_enabled:
        return ResponseCache(store=None, config=config)
    return ResponseCache(store=store or create_document_store(settings), config=config)
