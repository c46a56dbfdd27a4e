# src/storage/errors.py - v1
"""Document store error taxonomy."""

from __future__ import annotations


class StorageError(Exception):
    """A document store read or write failed."""

    def __init__(self, name: str, operation: str, cause: Exception | None = None):
        self.name = name
        self.operation = operation
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Document store {operation} of '{name}' failed{detail}")


class MalformedDocumentError(StorageError):
    """Stored document exists but is not a JSON object.

    Never retried: reading the same bytes again gives the same result.
    """

    def __init__(self, name: str, cause: Exception | None = None):
        super().__init__(name, "decode", cause)
