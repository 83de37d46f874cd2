"""Environment-driven settings for record-spine.

Applications usually want to pick the SQL dialect and the log output from
the environment instead of hard-coding them.  ``RecordSpineSettings`` reads
``RECORDSPINE_*`` variables (and a ``.env`` file) and builds the matching
dialect and logging configuration.

Features:
    - **RecordSpineSettings:** dialect, postgres_numbered, log_level,
      log_json, service
    - **Validated at load time:** unknown dialect names fail immediately
    - **get_settings():** cached instance, ``reload=True`` re-reads the
      environment

Examples:
    >>> import os
    >>> os.environ["RECORDSPINE_DIALECT"] = "postgresql"
    >>> os.environ["RECORDSPINE_POSTGRES_NUMBERED"] = "true"
    >>> settings = RecordSpineSettings()
    >>> settings.build_dialect().bind_var(0)
    '$1'

Tags:
    settings, configuration, pydantic, environment, record-spine

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from recordspine.dialect import Dialect, available_dialects, get_dialect
from recordspine.logging import configure_logging

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RecordSpineSettings(BaseSettings):
    """record-spine configuration.

    Fields
    ──────
    dialect            : Registered dialect name (sqlite, mysql, postgresql, ...)
    postgres_numbered  : Use ``$1`` bind variables with the PostgreSQL dialect
    log_level          : Structlog log level
    log_json           : JSON output instead of the console renderer
    service            : Service name attached to every log line
    """

    model_config = SettingsConfigDict(
        env_prefix="RECORDSPINE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Database ─────────────────────────────────────────────────
    dialect: str = Field(default="default", description="SQL dialect name")
    postgres_numbered: bool = Field(
        default=False,
        description="Numbered ($1, $2, ...) bind variables for PostgreSQL",
    )

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)
    service: str = Field(default="recordspine")

    @field_validator("dialect")
    @classmethod
    def _known_dialect(cls, value: str) -> str:
        name = value.strip().lower()
        if name not in available_dialects():
            raise ValueError(
                f"unknown dialect '{value}', expected one of {available_dialects()}"
            )
        return name

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level '{value}', expected one of {list(_LOG_LEVELS)}")
        return level

    # ── Derived ──────────────────────────────────────────────────

    @property
    def is_postgres(self) -> bool:
        return self.dialect in ("postgresql", "postgres")

    def build_dialect(self) -> Dialect:
        """Build the configured dialect."""
        if self.is_postgres:
            return get_dialect(self.dialect, numbered=self.postgres_numbered)
        return get_dialect(self.dialect)

    def apply_logging(self) -> None:
        """Configure structlog from these settings."""
        configure_logging(
            level=self.log_level,
            json_format=self.log_json,
            service=self.service,
        )


_settings_cache: dict[str, RecordSpineSettings] = {}


def get_settings(*, reload: bool = False) -> RecordSpineSettings:
    """Load and cache a :class:`RecordSpineSettings` instance."""
    if reload or "default" not in _settings_cache:
        _settings_cache["default"] = RecordSpineSettings()
    return _settings_cache["default"]


__all__ = [
    "RecordSpineSettings",
    "get_settings",
]
