# src/config/settings.py - v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for cache, storage and logging settings. Values are
read once at construction and stay static for the process lifetime.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Document names owned by other subsystems sharing the same store.
RESERVED_DOCUMENT_NAMES: frozenset[str] = frozenset({"tasks", "config", "context"})

DEFAULT_WARMUP_PROMPTS: tuple[str, ...] = (
    "Explain the concept of dependency injection in JavaScript",
    "What are the best practices for React component architecture?",
    "How to implement proper error handling in Node.js?",
    "Explain the differences between SQL and NoSQL databases",
    "What is the purpose of Docker containerization?",
)


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Cache ===
    cache_durable_enabled: bool = True
    cache_max_items: int = 1000
    cache_default_ttl_s: float = 3600.0
    cache_cleanup_interval_s: float = 300.0
    cache_cleanup_timeout_s: float = 30.0
    cache_persist_size_threshold: int = 1000
    cache_document_name: str = "cache"
    cache_io_retries: int = 2
    cache_io_retry_delay_s: float = 0.05
    # JSON list in the environment: CACHE_WARMUP_PROMPTS='["first", "second"]'
    cache_warmup_prompts: list[str] = Field(
        default_factory=lambda: list(DEFAULT_WARMUP_PROMPTS)
    )

    # === Durable storage ===
    storage_backend: Literal["json", "sqlite", "redis"] = "json"
    storage_root: Path = Path("~/.aicache/store")
    storage_redis_url: str = ""

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator(
        "cache_max_items",
        "cache_default_ttl_s",
        "cache_cleanup_interval_s",
        "cache_cleanup_timeout_s",
    )
    @classmethod
    def validate_positive(cls, v: float, info) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("cache_persist_size_threshold", "cache_io_retries")
    @classmethod
    def validate_non_negative(cls, v: int, info) -> int:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @field_validator("cache_warmup_prompts")
    @classmethod
    def validate_warmup_prompts(cls, v: list[str]) -> list[str]:  # noqa: N805
        return [p.strip() for p in v if p.strip()]

    @field_validator("cache_document_name")
    @classmethod
    def validate_document_name(cls, v: str) -> str:  # noqa: N805
        v = v.strip()
        if not v:
            raise ValueError("cache_document_name must not be empty")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.cache_cleanup_timeout_s >= self.cache_cleanup_interval_s:
            errors.append(
                "CACHE_CLEANUP_TIMEOUT_S must be < CACHE_CLEANUP_INTERVAL_S"
            )

        if self.cache_document_name in RESERVED_DOCUMENT_NAMES:
            errors.append(
                f"CACHE_DOCUMENT_NAME {self.cache_document_name!r} is reserved "
                "by another subsystem"
            )

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or embedding).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
