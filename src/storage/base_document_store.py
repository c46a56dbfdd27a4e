# src/storage/base_document_store.py - v1
"""Abstract named-document store interface.

A document is a JSON object addressed by name. Every write replaces the
whole document; backends must make that replacement atomic so a concurrent
reader sees either the old or the new snapshot.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any

from aicache.storage.errors import MalformedDocumentError


class BaseDocumentStore(ABC):
    """Unified interface for durable document backends."""

    @abstractmethod
    async def read(self, name: str) -> dict[str, Any]:
        """Return the named document, or an empty dict if absent.

        Raises:
            MalformedDocumentError: If stored content is not a JSON object.
            StorageError: On backend I/O failure.
        """

    @abstractmethod
    async def write(self, name: str, document: dict[str, Any]) -> None:
        """Replace the named document."""

    @abstractmethod
    async def delete(self, name: str) -> None:
        """Remove the named document (no-op if absent)."""

    @abstractmethod
    async def list_names(self) -> list[str]:
        """List stored document names."""

    def close(self) -> None:  # noqa: B027
        """Release backend resources."""


def parse_document(name: str, raw: str | bytes) -> dict[str, Any]:
    """Decode stored bytes into a document.

    Raises:
        MalformedDocumentError: If raw is not JSON or not a JSON object.
    """
    try:
        document = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedDocumentError(name, e) from e
    if not isinstance(document, dict):
        raise MalformedDocumentError(
            name, TypeError(f"expected object, got {type(document).__name__}")
        )
    return document


def dump_document(document: dict[str, Any]) -> str:
    """Serialize a document for storage."""
    return json.dumps(document, indent=2, ensure_ascii=False, default=str)
