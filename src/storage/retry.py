# src/storage/retry.py - v1
"""Bounded retry with exponential backoff for document store I/O."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from aicache.storage.errors import MalformedDocumentError

logger = logging.getLogger(__name__)


class StoreRetryExhausted(Exception):
    """All attempts for a document store operation failed."""

    def __init__(self, operation: str, attempts: int, last_error: Exception):
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Store operation '{operation}' failed after {attempts} attempts: {last_error}"
        )


@dataclass(frozen=True)
class RetryConfig:
    """Retry configuration for store I/O."""

    max_retries: int = 2
    base_delay_s: float = 0.05
    backoff_factor: float = 2.0
    jitter: bool = True


def _compute_delay(config: RetryConfig, attempt: int) -> float:
    """Compute delay for a given attempt (0-based)."""
    delay = config.base_delay_s * (config.backoff_factor ** attempt)
    if config.jitter:
        delay *= 0.5 + random.random()  # noqa: S311
    return delay


async def with_retry(
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    operation: str = "unknown",
    config: RetryConfig | None = None,
    **kwargs: Any,
) -> Any:
    """Execute an async store call, retrying transient failures.

    MalformedDocumentError propagates immediately.

    Raises:
        StoreRetryExhausted: If all retries are exhausted.
    """
    config = config or RetryConfig()
    attempts = 0

    while True:
        try:
            return await fn(*args, **kwargs)
        except MalformedDocumentError:
            raise
        except Exception as e:
            attempts += 1
            if attempts > config.max_retries:
                raise StoreRetryExhausted(operation, attempts, e) from e

            delay = _compute_delay(config, attempts - 1)
            logger.warning(
                "Store %s failed (attempt %d/%d), retrying in %.2fs: %s",
                operation, attempts, config.max_retries, delay, e,
            )
            await asyncio.sleep(delay)
