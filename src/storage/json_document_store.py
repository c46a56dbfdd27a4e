# src/storage/json_document_store.py - v1
"""JSON file document store (default STORAGE_BACKEND=json).

Each document lives in ``<root>/<name>.json``. Writes go to a temp file in
the same directory and are moved into place with ``os.replace``.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from aicache.storage.base_document_store import (
    BaseDocumentStore,
    dump_document,
    parse_document,
)
from aicache.storage.errors import StorageError

logger = logging.getLogger(__name__)


class JsonDocumentStore(BaseDocumentStore):
    """File-based document store using one JSON file per document."""

    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).expanduser()

    @property
    def root(self) -> Path:
        return self._root

    async def read(self, name: str) -> dict[str, Any]:
        """Read a document; missing file yields an empty document."""
        path = self._document_path(name)
        try:
            raw = await asyncio.to_thread(_read_bytes, path)
        except OSError as e:
            raise StorageError(name, "read", e) from e
        if raw is None:
            return {}
        return parse_document(name, raw)

    async def write(self, name: str, document: dict[str, Any]) -> None:
        """Atomically replace a document."""
        path = self._document_path(name)
        payload = dump_document(document)
        try:
            await asyncio.to_thread(_atomic_write, path, payload)
        except OSError as e:
            raise StorageError(name, "write", e) from e
        logger.debug("Document written: %s (%d bytes)", name, len(payload))

    async def delete(self, name: str) -> None:
        """Remove a document file."""
        path = self._document_path(name)
        if path.exists():
            path.unlink()

    async def list_names(self) -> list[str]:
        """List stored document names."""
        if not self._root.is_dir():
            return []
        return sorted(p.stem for p in self._root.glob("*.json"))

    def _document_path(self, name: str) -> Path:
        """Return file path for a document name."""
        safe_name = name.replace("/", "_").replace("\\", "_")
        return self._root / f"{safe_name}.json"


def _read_bytes(path: Path) -> bytes | None:
    try:
        return path.read_bytes()
    except FileNotFoundError:
        return None


def _atomic_write(path: Path, payload: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=str(path.parent), prefix=f".{path.stem}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(payload)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
