# src/storage/sqlite_document_store.py - v2
"""SQLite document store (STORAGE_BACKEND=sqlite).

Uses stdlib sqlite3 with no external dependency. One row per document,
replaced in a single statement. Statements run in worker threads via
``asyncio.to_thread``; one lock serializes use of the shared connection.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

from aicache.storage.base_document_store import (
    BaseDocumentStore,
    dump_document,
    parse_document,
)
from aicache.storage.errors import StorageError

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    name TEXT PRIMARY KEY,
    body TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


class SqliteDocumentStore(BaseDocumentStore):
    """SQLite-backed document store."""

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path).expanduser()
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)
        self._lock = threading.Lock()

    async def read(self, name: str) -> dict[str, Any]:
        """Read a document; missing row yields an empty document."""
        try:
            row = await asyncio.to_thread(self._select_body, name)
        except sqlite3.Error as e:
            raise StorageError(name, "read", e) from e
        if row is None:
            return {}
        return parse_document(name, row[0])

    async def write(self, name: str, document: dict[str, Any]) -> None:
        """Replace a document (upsert)."""
        payload = dump_document(document)
        try:
            await asyncio.to_thread(self._upsert, name, payload)
        except sqlite3.Error as e:
            raise StorageError(name, "write", e) from e
        logger.debug("Document written: %s (%d bytes)", name, len(payload))

    async def delete(self, name: str) -> None:
        """Remove a document."""
        await asyncio.to_thread(
            self._execute_commit, "DELETE FROM documents WHERE name = ?", (name,)
        )

    async def list_names(self) -> list[str]:
        """List stored document names."""
        return await asyncio.to_thread(self._select_names)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    # --- Blocking helpers (worker threads) ---

    def _select_body(self, name: str) -> tuple[str] | None:
        with self._lock:
            cursor = self._conn.execute(
                "SELECT body FROM documents WHERE name = ?", (name,)
            )
            return cursor.fetchone()

    def _upsert(self, name: str, payload: str) -> None:
        self._execute_commit(
            """INSERT OR REPLACE INTO documents (name, body, updated_at)
               VALUES (?, ?, CURRENT_TIMESTAMP)""",
            (name, payload),
        )

    def _execute_commit(self, sql: str, params: tuple[Any, ...]) -> None:
        with self._lock:
            self._conn.execute(sql, params)
            self._conn.commit()

    def _select_names(self) -> list[str]:
        with self._lock:
            cursor = self._conn.execute("SELECT name FROM documents ORDER BY name")
            return [row[0] for row in cursor.fetchall()]
