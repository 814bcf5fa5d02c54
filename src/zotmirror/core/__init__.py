"""Core domain models and interfaces."""

from .exceptions import (
    AttachmentError,
    ConfigurationError,
    NetworkError,
    ObjectStorageError,
    PdfExtractionError,
    SourceFetchError,
    StorageError,
    ZotMirrorError,
)
from .item_types import ATTACHMENT_TYPE, ITEM_TYPES, canonical_item_type
from .models import (
    AssociationKey,
    CollectionRow,
    GroupRow,
    ItemRow,
    ItemToCollectionRow,
    LanguageRow,
    PdfContent,
    RemoteRecord,
    StoredFileState,
    UploadedUrls,
)
from .protocols import ObjectStore, PdfRenderer, RemoteLibrary

__all__ = [
    # Models
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
    # Item types
    "ITEM_TYPES",
    "ATTACHMENT_TYPE",
    "canonical_item_type",
    # Protocols
    "RemoteLibrary",
    "ObjectStore",
    "PdfRenderer",
    # Exceptions
    "ZotMirrorError",
    "ConfigurationError",
    "NetworkError",
    "SourceFetchError",
    "StorageError",
    "ObjectStorageError",
    "AttachmentError",
    "PdfExtractionError",
]
