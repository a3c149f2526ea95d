"""Centralized configuration for logspine.

Every knob the parser exposes can be set through ``LOGSPINE_*`` environment
variables or a ``.env`` file, and overridden by passing an explicit
``LogSpineSettings`` instance to a ``Parser``.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not at the first parse
    - **Environment-driven:** Reads from env vars and .env files
    - **Sensible defaults:** Works out of the box

Fields
──────
log_level        : Structlog log level used by ``configure_logging``
log_format       : ``console`` | ``json`` | ``auto`` (json when not a tty)
max_path_depth   : Default recursion bound for ``get_possible_paths``
reset_each_parse : Call ``prepare_for_run`` on every bound dissector
                   before each parse call, not only after compilation
root_name        : Path name of the root input value

Examples:
    >>> from logspine.core.settings import LogSpineSettings
    >>> LogSpineSettings(max_path_depth=5).max_path_depth
    5

Tags:
    settings, configuration, pydantic, environment, logspine-core

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ROOT_NAME = "rootinputline"
DEFAULT_MAX_PATH_DEPTH = 15


class LogSpineSettings(BaseSettings):
    """logspine configuration, read from ``LOGSPINE_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="LOGSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: Literal["console", "json", "auto"] = Field(default="auto")

    # ── Parser ───────────────────────────────────────────────────
    max_path_depth: int = Field(
        default=DEFAULT_MAX_PATH_DEPTH,
        ge=0,
        description="Default recursion bound when listing possible paths",
    )
    reset_each_parse: bool = Field(
        default=True,
        description="Reset dissector state before every parse call",
    )
    root_name: str = Field(default=DEFAULT_ROOT_NAME)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    @field_validator("root_name")
    @classmethod
    def _plain_root_name(cls, value: str) -> str:
        if not value or ":" in value or "." in value:
            raise ValueError("root_name must be a single path segment")
        return value

    @property
    def json_logs(self) -> bool | None:
        """Value for ``configure_logging(json_format=...)``."""
        if self.log_format == "auto":
            return None
        return self.log_format == "json"


# ── Settings factory with caching ────────────────────────────────────────

_settings_cache: LogSpineSettings | None = None


def get_settings(*, _force_reload: bool = False) -> LogSpineSettings:
    """Load, validate, and cache the process-wide settings."""
    global _settings_cache
    if _settings_cache is None or _force_reload:
        _settings_cache = LogSpineSettings()
    return _settings_cache


def clear_settings_cache() -> None:
    """Forget cached settings (for testing)."""
    global _settings_cache
    _settings_cache = None


__all__ = [
    "DEFAULT_MAX_PATH_DEPTH",
    "DEFAULT_ROOT_NAME",
    "LogSpineSettings",
    "clear_settings_cache",
    "get_settings",
]
