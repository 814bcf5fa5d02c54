"""Diagnostic JSON snapshots of fetched payloads."""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


def write_snapshot(directory: Path | str, name: str, payload: Any) -> Path | None:
    """Write ``payload`` as indented JSON for offline inspection.

    Snapshots are operational visibility only, so a write failure is logged
    and ignored.
    """
    path = Path(directory) / name
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, ensure_ascii=False, default=str), encoding="utf-8")
    except OSError as exc:
        logger.warning("Could not write snapshot %s: %s", path, exc)
        return None
    return path


__all__ = ["write_snapshot"]
