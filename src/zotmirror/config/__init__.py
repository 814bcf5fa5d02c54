"""Configuration management."""

from .loader import ConfigLoader
from .settings import Settings, SyncConfig, load_settings

__all__ = ["Settings", "SyncConfig", "load_settings", "ConfigLoader"]
