# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Covers deployment concerns only (limits, timeouts, storage, logging).
Matching and fusion thresholds are module constants next to the code
that applies them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === Duplicate detection defaults ===
    default_temporal_tolerance_days: int = 30
    default_duplicate_scope: Literal["company", "user"] = "company"
    candidate_limit: int = 500

    # === Content analysis ===
    content_analysis_timeout_s: float = 15.0

    # === Hashing ===
    perceptual_hash_pdf: bool = True

    # === Upload limits ===
    max_file_size_mb: int = 50
    supported_mime_types: str = (
        "application/pdf,image/jpeg,image/jpg,image/png,image/gif,image/webp,"
        "text/plain,text/csv"
    )
    blocked_extensions: str = "exe,bat,scr,com,cmd,pif"

    # === Storage ===
    storage_backend: Literal["memory", "json", "sqlite"] = "memory"
    storage_root: Path = Path("~/.docintel/store")

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("default_temporal_tolerance_days")
    @classmethod
    def validate_tolerance(cls, v: int) -> int:  # noqa: N805
        if not 1 <= v <= 365:
            raise ValueError("default_temporal_tolerance_days must be within 1..365")
        return v

    @field_validator("content_analysis_timeout_s")
    @classmethod
    def validate_timeout(cls, v: float) -> float:  # noqa: N805
        if v <= 0:
            raise ValueError("content_analysis_timeout_s must be > 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.max_file_size_mb <= 0:
            errors.append("MAX_FILE_SIZE_MB must be positive")

        if self.candidate_limit <= 0:
            errors.append("CANDIDATE_LIMIT must be positive")

        if not self.supported_mime_types_list:
            errors.append("SUPPORTED_MIME_TYPES must list at least one type")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def supported_mime_types_list(self) -> list[str]:
        """Parse comma-separated mime types."""
        return [
            m.strip().lower() for m in self.supported_mime_types.split(",") if m.strip()
        ]

    @property
    def blocked_extensions_list(self) -> list[str]:
        """Parse comma-separated extensions, without leading dots."""
        return [
            e.strip().lower().lstrip(".")
            for e in self.blocked_extensions.split(",")
            if e.strip()
        ]

    @property
    def max_file_size_bytes(self) -> int:
        return self.max_file_size_mb * 1024 * 1024


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-request config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
