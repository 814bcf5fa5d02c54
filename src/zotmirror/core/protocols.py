"""Capability interfaces used by the sync pipeline."""

from pathlib import Path
from typing import Protocol, runtime_checkable

from .models import PdfContent, RemoteRecord


@runtime_checkable
class RemoteLibrary(Protocol):
    """Remote bibliographic API."""

    def fetch_groups(self) -> list[RemoteRecord]:
        """Fetch all groups the credential can read."""
        ...

    def fetch_items(self, group_id: str, since_version: int | None = None) -> tuple[list[list[RemoteRecord]], int]:
        """Fetch item pages changed since a version, with the library version."""
        ...

    def fetch_collections(self, group_id: str, since_version: int = 0) -> list[RemoteRecord]:
        """Fetch collections changed since a version, trashed ones included."""
        ...

    def download_attachment(self, group_id: str, item_key: str, dest: Path) -> Path:
        """Download an attachment's file content to ``dest``."""
        ...

    def close(self) -> None:
        """Release network resources."""
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """Object storage bucket."""

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload (or overwrite) an object, returning its path."""
        ...

    def remove(self, paths: list[str]) -> list[str]:
        """Remove objects, returning the removed paths."""
        ...

    def public_url(self, path: str) -> str:
        """Return the public URL of an object, computed locally."""
        ...


@runtime_checkable
class PdfRenderer(Protocol):
    """PDF text extraction and cover rendering."""

    def extract(self, data: bytes) -> PdfContent:
        """Extract full text and render the first page."""
        ...


__all__ = ["RemoteLibrary", "ObjectStore", "PdfRenderer"]
