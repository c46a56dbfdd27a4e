# src/logging/context.py - v2
"""Contextual logging support: attach request_id, tool, model_class to records.

Whoever dispatches work to the cache sets these once per invocation with
``set_request_context``: the ``aicache`` CLI does so for each command, and an
embedding tool server is expected to do the same per tool call. Every cache
log line emitted while serving that invocation carries them.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_request_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "request_id", default=None
)
_tool: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "tool", default=None
)
_model_class: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "model_class", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    request_id: str | None = None
    tool: str | None = None
    model_class: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        request_id=_request_id.get(),
        tool=_tool.get(),
        model_class=_model_class.get(),
    )


def set_request_context(
    request_id: str, tool: str | None = None, model_class: str | None = None
) -> None:
    """Set request-level context (called once per tool invocation)."""
    _request_id.set(request_id)
    _tool.set(tool)
    _model_class.set(model_class)


def clear_context() -> None:
    """Reset all context variables."""
    _request_id.set(None)
    _tool.set(None)
    _model_class.set(None)
