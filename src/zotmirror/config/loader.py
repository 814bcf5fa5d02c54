"""YAML configuration loading with environment variable expansion."""

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml

from zotmirror.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_ENV_PATTERN = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}")


def _expand_env(value: Any) -> Any:
    """Recursively replace ``${VAR}`` and ``${VAR:-default}`` in strings."""
    if isinstance(value, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), value)
    if isinstance(value, dict):
        return {key: _expand_env(val) for key, val in value.items()}
    if isinstance(value, list):
        return [_expand_env(val) for val in value]
    return value


def _load_yaml(path: Path) -> dict[str, Any]:
    """Load a YAML mapping, returning an empty mapping when the file is absent."""
    if not path.exists():
        logger.debug("Config file %s not found, relying on environment", path)
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"Top level of {path} must be a mapping")
    return _expand_env(data)


class ConfigLoader:
    """Loads ``config/config.yaml`` relative to a base directory."""

    def __init__(self, base_dir: Path | str):
        self.base_dir = Path(base_dir)

    @property
    def config_path(self) -> Path:
        return self.base_dir / "config" / "config.yaml"

    def load(self) -> dict[str, Any]:
        return _load_yaml(self.config_path)


__all__ = ["ConfigLoader"]
