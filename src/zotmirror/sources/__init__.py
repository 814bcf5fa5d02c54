"""Remote data sources."""

from .zotero import ZoteroClient

__all__ = ["ZoteroClient"]
