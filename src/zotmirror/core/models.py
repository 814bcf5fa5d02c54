"""Core domain models for ZotMirror."""

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

# Remote API records are kept as the decoded JSON objects the API returns.
RemoteRecord = dict[str, Any]

# Rows are flat mappings of destination column name to value.
ItemRow = dict[str, Any]
CollectionRow = dict[str, Any]
GroupRow = dict[str, Any]
ItemToCollectionRow = dict[str, str]
LanguageRow = dict[str, str]

# (itemKey, collectionKey)
AssociationKey = tuple[str, str]


class StoredFileState(BaseModel):
    """Attachment-related columns of a persisted item row."""

    key: str
    md5: str | None = None
    mtime: str | None = None
    filename: str | None = None
    url: str | None = None
    fullTextPDF: str | None = None
    PDFCoverPageImage: str | None = None

    def matches(self, data: RemoteRecord) -> bool:
        """Whether the remote attachment content equals the persisted one."""
        return (
            self.md5 == data.get("md5")
            and self.mtime == _as_text(data.get("mtime"))
            and self.filename == data.get("filename")
        )

    def file_fields(self) -> dict[str, str | None]:
        """Return the file columns to carry forward into a new row."""
        return {
            "url": self.url,
            "fullTextPDF": self.fullTextPDF,
            "PDFCoverPageImage": self.PDFCoverPageImage,
        }


def _as_text(value: Any) -> str | None:
    # mtime arrives as an integer but is stored as text
    if value is None:
        return None
    return str(value)


@dataclass
class PdfContent:
    """Text and cover image extracted from a PDF."""

    text: str
    cover: bytes
    ratio: float  # first page width / height, 0 when unknown


@dataclass
class UploadedUrls:
    """Public URLs of an uploaded attachment and its cover."""

    pdf_url: str
    cover_url: str


__all__ = [
    "RemoteRecord",
    "ItemRow",
    "CollectionRow",
    "GroupRow",
    "ItemToCollectionRow",
    "LanguageRow",
    "AssociationKey",
    "StoredFileState",
    "PdfContent",
    "UploadedUrls",
]
