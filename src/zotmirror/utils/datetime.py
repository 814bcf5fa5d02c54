"""Datetime helpers."""

from datetime import datetime, timezone


def iso_to_datetime(value: str | None) -> datetime | None:
    """Parse Zotero's ISO-8601 timestamps (``2024-01-15T10:30:00Z``)."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_sqlite_datetime(value: datetime | None) -> str | None:
    """Format a datetime for storage as UTC ISO text."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


__all__ = ["iso_to_datetime", "format_sqlite_datetime"]
