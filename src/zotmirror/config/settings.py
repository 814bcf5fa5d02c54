"""Configuration settings models."""

import os
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from zotmirror.core.constants import (
    DEFAULT_COVER_WIDTH,
    DEFAULT_PROCESS_BATCH_SIZE,
    DEFAULT_RETRY_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    DEFAULT_WRITE_BATCH_SIZE,
    ZOTERO_API_PAGE_SIZE,
)
from zotmirror.core.exceptions import ConfigurationError

from .loader import ConfigLoader

# Environment variables consulted when the config file leaves a value blank
ENV_FALLBACKS = {
    ("zotero", "user_id"): "ZOTERO_USER_ID",
    ("zotero", "api_key"): "ZOTERO_API_KEY",
    ("storage", "url"): "SUPABASE_URL",
    ("storage", "service_key"): "SUPABASE_SERVICE_ROLE",
    ("storage", "bucket"): "SUPABASE_STORAGE_BUCKET",
}


# Zotero Configuration
class ZoteroConfig(BaseModel):
    """Zotero Web API configuration."""

    user_id: str = ""
    api_key: str = ""
    page_size: int = ZOTERO_API_PAGE_SIZE
    polite_delay_ms: int = 200

    @field_validator("page_size")
    @classmethod
    def validate_page_size(cls, value: int) -> int:
        if not 1 <= value <= 100:
            raise ValueError("page_size must be between 1 and 100 (Zotero API limit)")
        return value


class DatabaseConfig(BaseModel):
    """Relational store configuration."""

    path: str = "data/zotmirror.sqlite"


class StorageConfig(BaseModel):
    """Object storage (Supabase) configuration."""

    url: str = ""
    service_key: str = ""
    bucket: str = ""


class SyncConfig(BaseModel):
    """Sync pass tuning.

    Retries use a fixed delay between attempts; there is no backoff.
    """

    retry_attempts: int = DEFAULT_RETRY_ATTEMPTS
    retry_delay: float = DEFAULT_RETRY_DELAY  # seconds between attempts
    process_batch_size: int = DEFAULT_PROCESS_BATCH_SIZE  # concurrent attachment tasks
    write_batch_size: int = DEFAULT_WRITE_BATCH_SIZE  # rows per bulk upsert
    cover_width: int = DEFAULT_COVER_WIDTH
    process_attachments: bool = True
    scratch_dir: str = "temp"
    snapshot_dir: str = "."
    write_snapshots: bool = True

    @field_validator("retry_attempts", "process_batch_size", "write_batch_size", "cover_width")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("must be at least 1")
        return value

    @field_validator("retry_delay")
    @classmethod
    def validate_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError("retry_delay must not be negative")
        return value


# Main Settings
class Settings(BaseModel):
    """Main configuration settings."""

    zotero: ZoteroConfig = Field(default_factory=ZoteroConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    sync: SyncConfig = Field(default_factory=SyncConfig)

    def require_complete(self) -> "Settings":
        """Raise ConfigurationError when an endpoint, credential or bucket is missing."""
        missing = [
            f"{section}.{name} ({env})"
            for (section, name), env in ENV_FALLBACKS.items()
            if not getattr(getattr(self, section), name)
        ]
        if missing:
            raise ConfigurationError("Missing required configuration: " + ", ".join(missing))
        return self


def _apply_env_fallbacks(config: dict) -> dict:
    for (section, name), env in ENV_FALLBACKS.items():
        values = config.setdefault(section, {}) or {}
        config[section] = values
        if not values.get(name) and os.environ.get(env):
            values[name] = os.environ[env]
    return config


def load_settings(base_dir: Path | str) -> Settings:
    """Load settings from ``config/config.yaml`` plus environment fallbacks.

    Raises:
        ConfigurationError: If the file is invalid or a required value is missing.
    """
    base = Path(base_dir)
    config = _apply_env_fallbacks(ConfigLoader(base).load())

    try:
        settings = Settings(
            zotero=ZoteroConfig(**(config.get("zotero") or {})),
            database=DatabaseConfig(**(config.get("database") or {})),
            storage=StorageConfig(**(config.get("storage") or {})),
            sync=SyncConfig(**(config.get("sync") or {})),
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc

    return settings.require_complete()


__all__ = [
    "Settings",
    "load_settings",
    "ZoteroConfig",
    "DatabaseConfig",
    "StorageConfig",
    "SyncConfig",
]
