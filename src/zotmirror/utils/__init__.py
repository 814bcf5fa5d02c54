"""Shared utilities."""

from .datetime import format_sqlite_datetime, iso_to_datetime
from .logging import setup_logging
from .retry import retry_operation
from .snapshots import write_snapshot
from .text import iter_batches, strip_control_chars

__all__ = [
    "setup_logging",
    "iso_to_datetime",
    "format_sqlite_datetime",
    "retry_operation",
    "write_snapshot",
    "iter_batches",
    "strip_control_chars",
]
