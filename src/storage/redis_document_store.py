# src/storage/redis_document_store.py - v2
"""Redis document store (STORAGE_BACKEND=redis).

Requires 'redis' package: pip install aicache[redis].
Each document is one string key, so SET replaces it atomically. Client
calls block, so they run in worker threads via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from aicache.storage.base_document_store import (
    BaseDocumentStore,
    dump_document,
    parse_document,
)
from aicache.storage.errors import StorageError

logger = logging.getLogger(__name__)

_KEY_PREFIX = "aicache:doc:"
_INDEX_KEY = "aicache:doc:__index__"


class RedisDocumentStore(BaseDocumentStore):
    """Redis-backed document store."""

    def __init__(self, redis_url: str) -> None:
        try:
            import redis
        except ImportError as e:
            raise ImportError(
                "redis package required: pip install redis"
            ) from e

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)

    async def read(self, name: str) -> dict[str, Any]:
        """Read a document; missing key yields an empty document."""
        try:
            data = await asyncio.to_thread(self._client.get, f"{_KEY_PREFIX}{name}")
        except Exception as e:
            raise StorageError(name, "read", e) from e
        if data is None:
            return {}
        return parse_document(name, data)

    async def write(self, name: str, document: dict[str, Any]) -> None:
        """Replace a document."""
        payload = dump_document(document)
        try:
            await asyncio.to_thread(self._set, name, payload)
        except Exception as e:
            raise StorageError(name, "write", e) from e

    async def delete(self, name: str) -> None:
        """Remove a document."""
        await asyncio.to_thread(self._delete, name)

    async def list_names(self) -> list[str]:
        """List stored document names."""
        names = await asyncio.to_thread(self._client.smembers, _INDEX_KEY)
        return sorted(names)

    def close(self) -> None:
        """Close the Redis connection."""
        self._client.close()

    def _set(self, name: str, payload: str) -> None:
        self._client.set(f"{_KEY_PREFIX}{name}", payload)
        self._client.sadd(_INDEX_KEY, name)

    def _delete(self, name: str) -> None:
        self._client.delete(f"{_KEY_PREFIX}{name}")
        self._client.srem(_INDEX_KEY, name)
