"""Core constants for ZotMirror."""

# Network timeouts (seconds)
DEFAULT_HTTP_TIMEOUT = 30.0
DEFAULT_DOWNLOAD_TIMEOUT = 120.0

# Zotero Web API
ZOTERO_API_BASE = "https://api.zotero.org"
ZOTERO_API_VERSION = "3"
ZOTERO_API_PAGE_SIZE = 100
USER_AGENT = "ZotMirror/0.3"

# Retry policy for attachment side work (fixed delay, no backoff)
DEFAULT_RETRY_ATTEMPTS = 3
DEFAULT_RETRY_DELAY = 3.0  # seconds

# Batching
DEFAULT_PROCESS_BATCH_SIZE = 20  # concurrent attachment tasks per batch
DEFAULT_WRITE_BATCH_SIZE = 500  # rows per bulk upsert

# Attachments
PDF_CONTENT_TYPE = "application/pdf"
PNG_CONTENT_TYPE = "image/png"
COVER_FILENAME = "cover.png"
DEFAULT_COVER_WIDTH = 2550  # pixels

__all__ = [
    "DEFAULT_HTTP_TIMEOUT",
    "DEFAULT_DOWNLOAD_TIMEOUT",
    "ZOTERO_API_BASE",
    "ZOTERO_API_VERSION",
    "ZOTERO_API_PAGE_SIZE",
    "USER_AGENT",
    "DEFAULT_RETRY_ATTEMPTS",
    "DEFAULT_RETRY_DELAY",
    "DEFAULT_PROCESS_BATCH_SIZE",
    "DEFAULT_WRITE_BATCH_SIZE",
    "PDF_CONTENT_TYPE",
    "PNG_CONTENT_TYPE",
    "COVER_FILENAME",
    "DEFAULT_COVER_WIDTH",
]
