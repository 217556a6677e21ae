"""Schema engine configuration loaded from environment variables."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Application settings loaded from environment variables with SCHEMABRIDGE_ prefix."""

    model_config = SettingsConfigDict(
        env_prefix="SCHEMABRIDGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    debug: bool = False

    # Logging
    structured_logging: bool = False

    # Validation
    validation_debounce_seconds: float = Field(default=0.5, ge=0.0)
    naming_lint_enabled: bool = False

    # SQL generation
    sql_indent: int = Field(default=2, ge=0, le=8)
    include_comments: bool = True


def load_settings(**overrides: object) -> Settings:
    """Load settings from environment, with optional overrides for testing."""
    settings = Settings(**overrides)  # type: ignore[arg-type]

    if settings.debug:
        logger.info(
            "Loaded settings: debounce=%.3fs naming_lint=%s structured_logging=%s",
            settings.validation_debounce_seconds,
            settings.naming_lint_enabled,
            settings.structured_logging,
        )

    return settings
