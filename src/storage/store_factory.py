# src/storage/store_factory.py - v1
"""Factory: instantiate the durable document store from configuration."""

from __future__ import annotations

from aicache.config.settings import Settings
from aicache.storage.base_document_store import BaseDocumentStore


def create_document_store(settings: Settings | None = None) -> BaseDocumentStore:
    """Instantiate the configured document store backend.

    Args:
        settings: Application settings. Defaults to the JSON backend.

    Returns:
        Configured BaseDocumentStore implementation.

    Raises:
        ValueError: If the backend is unsupported or misconfigured.
    """
    backend = "json" if settings is None else settings.storage_backend
    root = "~/.aicache/store" if settings is None else str(settings.storage_root)

    if backend == "json":
        from aicache.storage.json_document_store import JsonDocumentStore
        return JsonDocumentStore(root=root)

    if backend == "sqlite":
        from aicache.storage.sqlite_document_store import SqliteDocumentStore
        return SqliteDocumentStore(db_path=f"{root}/aicache.db")

    if backend == "redis":
        from aicache.storage.redis_document_store import RedisDocumentStore
        if settings is None or not settings.storage_redis_url:
            raise ValueError(
                "STORAGE_REDIS_URL must be set when STORAGE_BACKEND=redis"
            )
        return RedisDocumentStore(redis_url=settings.storage_redis_url)

    raise ValueError(f"Unsupported storage backend: {backend!r}")
