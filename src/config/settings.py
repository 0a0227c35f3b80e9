# src/config/settings.py — v1
"""Typed configuration loaded from the environment / .env via pydantic-settings.

Single source of truth for deployment-specific paths and cache policy.
Every field can be set through a ``TO_ICALENDAR_``-prefixed environment
variable, e.g. ``TO_ICALENDAR_CACHE_DIR`` or ``TO_ICALENDAR_TEMP_DIR``.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reminder_cache.storage.layout import (
    TASK_CACHE_FILE,
    default_cache_root,
    default_temp_dir,
)


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from environment and .env file."""

    model_config = SettingsConfigDict(
        env_prefix="TO_ICALENDAR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Paths ===
    cache_dir: Path | None = None
    temp_dir: Path | None = None
    legacy_root: Path = Path(".")
    generated_dir: Path = Path(".")

    # === Task dedup cache ===
    dedup_enabled: bool = True
    task_cache_file: str = TASK_CACHE_FILE
    task_ttl_days: int = 30
    flush_queue_size: int = 64
    flush_timeout_seconds: float = 10.0

    # === Image cache ===
    image_cache_max_files: int = 50

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "text"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 5

    # --- Validators ---

    @field_validator("task_ttl_days", "flush_queue_size")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v <= 0:
            raise ValueError(f"{info.field_name} must be > 0")
        return v

    @field_validator("image_cache_max_files", "log_retention")
    @classmethod
    def validate_non_negative(cls, v: int, info) -> int:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Reject path combinations that would make cleanup destructive."""
        cache_root = self.resolved_cache_dir.expanduser().resolve()
        temp_root = self.resolved_temp_dir.expanduser().resolve()
        if temp_root == cache_root:
            raise ConfigurationError(
                "TEMP_DIR must not be the cache root: cleaning temp files "
                "would wipe the whole cache"
            )
        return self

    # --- Helpers ---

    @property
    def resolved_cache_dir(self) -> Path:
        """Cache root: explicit override or ``~/.to_icalendar/cache``."""
        if self.cache_dir is not None:
            return self.cache_dir.expanduser()
        return default_cache_root()

    @property
    def resolved_temp_dir(self) -> Path:
        """Temp directory: explicit override or ``~/.to_icalendar/temp``."""
        if self.temp_dir is not None:
            return self.temp_dir.expanduser()
        return default_temp_dir()

    @property
    def task_ttl(self) -> timedelta:
        return timedelta(days=self.task_ttl_days)


def load_settings(**overrides: object) -> Settings:
    """Load settings from the environment with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or CLI flags).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
