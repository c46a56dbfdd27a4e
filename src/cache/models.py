# src/cache/models.py - v1
"""Cache domain models: CacheOptions, CacheEntry, DurableRecord, CacheStatistics.

Timestamps are POSIX seconds taken from the cache clock.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.7
DEFAULT_COMPLEXITY = "medium"


class CacheOptions(BaseModel):
    """Generation options that take part in the cache fingerprint.

    Accepts ``max_tokens`` or ``maxTokens``. Unknown fields (e.g. a
    caller's ``use_cache`` flag) are ignored.
    """

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="ignore"
    )

    max_tokens: int | None = Field(default=None, ge=1)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    complexity: str | None = None

    def resolved(self) -> CacheOptions:
        """Return a copy with defaults applied to absent fields."""
        return CacheOptions(
            max_tokens=DEFAULT_MAX_TOKENS if self.max_tokens is None else self.max_tokens,
            temperature=(
                DEFAULT_TEMPERATURE if self.temperature is None else float(self.temperature)
            ),
            complexity=DEFAULT_COMPLEXITY if self.complexity is None else self.complexity,
        )


OptionsLike = CacheOptions | dict[str, Any] | None


def coerce_options(options: OptionsLike) -> CacheOptions:
    """Normalize caller options and apply defaults."""
    if options is None:
        return CacheOptions().resolved()
    if isinstance(options, CacheOptions):
        return options.resolved()
    return CacheOptions.model_validate(options).resolved()


def payload_size(data: Any) -> int:
    """Serialized payload size in bytes."""
    return len(json.dumps(data, ensure_ascii=False, default=str).encode("utf-8"))


class CacheEntry(BaseModel):
    """A cached model result held in the memory tier."""

    key: str
    data: Any
    model_class: str
    created_at: float
    expires_at: float
    last_accessed_at: float
    size_bytes: int = Field(ge=0)

    @model_validator(mode="after")
    def validate_expiry(self) -> CacheEntry:
        if self.expires_at <= self.created_at:
            raise ValueError("expires_at must be after created_at")
        return self

    def is_live(self, now: float) -> bool:
        return now < self.expires_at


class DurableRecord(BaseModel):
    """Persisted form of an entry inside the durable document."""

    data: Any
    expires_at: float
    model_class: str
    cached_at: float

    @model_validator(mode="after")
    def validate_expiry(self) -> DurableRecord:
        if self.expires_at <= self.cached_at:
            raise ValueError("expires_at must be after cached_at")
        return self

    def is_live(self, now: float) -> bool:
        return now < self.expires_at

    @classmethod
    def from_entry(cls, entry: CacheEntry) -> DurableRecord:
        return cls(
            data=entry.data,
            expires_at=entry.expires_at,
            model_class=entry.model_class,
            cached_at=entry.created_at,
        )

    def to_entry(self, key: str, now: float) -> CacheEntry:
        """Rebuild a memory entry for promotion."""
        return CacheEntry(
            key=key,
            data=self.data,
            model_class=self.model_class,
            created_at=self.cached_at,
            expires_at=self.expires_at,
            last_accessed_at=now,
            size_bytes=payload_size(self.data),
        )


class CacheStatistics(BaseModel):
    """Point-in-time snapshot of cache counters."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    total_requests: int = 0
    uncacheable: int = 0
    expirations: int = 0
    durable_errors: int = 0
    memory_items: int = 0
    memory_bytes: int = 0

    @computed_field  # type: ignore[prop-decorator]
    @property
    def hit_rate(self) -> float:
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests
