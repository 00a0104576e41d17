"""
Configuration — typed, validated loader settings from environment/.env.

Uses pydantic-settings so that buffer growth steps, the per-line decode bound
and the log level can be tuned without code changes:

  PEM_LOADER_BUFFER__OBJECT_INCREMENT=4096
  PEM_LOADER_MAX_DECODED_LINE_BYTES=96
  PEM_LOADER_LOG_LEVEL=DEBUG

Sub-settings are plain BaseModel classes populated through
env_nested_delimiter="__".
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from pem_loader.adapters.base64_codec import MAX_DECODED_LINE_BYTES
from pem_loader.domain.buffers import DER_INCREMENT, OBJ_INCREMENT

_ENV_FILE = Path(__file__).parent.parent.parent / ".env"


class BufferSettings(BaseModel):
    """Fixed growth steps of the DER byte buffer and the object collection."""

    object_increment: int = Field(
        default=DER_INCREMENT,
        ge=1,
        description="Bytes added each time an object's buffer must grow",
    )
    collection_increment: int = Field(
        default=OBJ_INCREMENT,
        ge=1,
        description="Slots added each time the object collection must grow",
    )


class LoaderSettings(BaseSettings):
    """
    Root loader settings.

    Load order (highest priority first):
      1. Environment variables prefixed with PEM_LOADER_
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="PEM_LOADER_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    buffer: BufferSettings = Field(default_factory=lambda: BufferSettings())
    max_decoded_line_bytes: int = Field(
        default=MAX_DECODED_LINE_BYTES,
        ge=3,
        description="Largest decoded size accepted for a single base64 body line",
    )
    file_encoding: str = Field(default="ascii")
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept standard logging level names only, case-insensitively."""
        level = value.strip().upper()
        if level not in logging.getLevelNamesMapping():
            raise ValueError(f"Unknown log level: {value!r}")
        return level
