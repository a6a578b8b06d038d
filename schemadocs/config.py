"""
Configuration for SchemaDocs.

Settings come from environment variables prefixed with SCHEMADOCS_, or
are passed explicitly. Defaults suit tests and local use: an in-memory
database and autocommit saves.

Invariants:
    - All settings have defaults that work without any environment
    - atomic_saves is off unless explicitly enabled

How to change safely:
    - Add new settings with defaults that keep current behaviour
"""

from __future__ import annotations

import logging

import json_log_formatter
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from .serializers import known_formats


class StoreSettings(BaseSettings):
    """Store configuration."""

    # Backing store
    database: str = Field(default=":memory:", description="SQLite file path or :memory:")
    busy_timeout_ms: int = Field(default=5000, ge=0)
    wal_mode: bool = Field(default=False)

    # Documents
    default_format: str = Field(default="yaml")
    atomic_saves: bool = Field(
        default=False,
        description="Write payload and index rows in one transaction",
    )

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", description="text or json")

    model_config = {"env_prefix": "SCHEMADOCS_"}

    @field_validator("default_format")
    @classmethod
    def _known_format(cls, value: str) -> str:
        if value not in known_formats():
            raise ValueError(f"Unknown format '{value}'. Known formats: {known_formats()}")
        return value

    @field_validator("log_format")
    @classmethod
    def _known_log_format(cls, value: str) -> str:
        if value not in ("text", "json"):
            raise ValueError("log_format must be 'text' or 'json'")
        return value


def setup_logging(settings: StoreSettings) -> None:
    """Configure logging based on settings.

    Args:
        settings: Store settings
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    if settings.log_format == "json":
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    package_logger = logging.getLogger("schemadocs")
    package_logger.setLevel(level)
    package_logger.handlers = [handler]
