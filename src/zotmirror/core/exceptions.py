"""Exception hierarchy for ZotMirror."""


class ZotMirrorError(Exception):
    """Base exception for all ZotMirror errors."""


class ConfigurationError(ZotMirrorError):
    """Missing or invalid configuration (endpoints, credentials, bucket)."""


class NetworkError(ZotMirrorError):
    """Network request failed after retries."""


class SourceFetchError(NetworkError):
    """Remote Zotero API returned an unusable response."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"{source}: {message}")


class StorageError(ZotMirrorError):
    """Relational store operation failed."""


class ObjectStorageError(ZotMirrorError):
    """Object storage upload, removal or lookup failed."""


class AttachmentError(ZotMirrorError):
    """Attachment could not be processed."""


class PdfExtractionError(AttachmentError):
    """PDF text or cover image could not be extracted."""


__all__ = [
    "ZotMirrorError",
    "ConfigurationError",
    "NetworkError",
    "SourceFetchError",
    "StorageError",
    "ObjectStorageError",
    "AttachmentError",
    "PdfExtractionError",
]
