"""Supabase storage bucket used to archive attachments."""

import logging

from supabase import Client, create_client

from zotmirror.config.settings import StorageConfig
from zotmirror.core.exceptions import ConfigurationError, ObjectStorageError

logger = logging.getLogger(__name__)


class SupabaseObjectStore:
    """Upload, remove and resolve public URLs of objects in one bucket."""

    def __init__(self, client: Client, bucket: str):
        if not bucket:
            raise ConfigurationError("Storage bucket name is not configured")
        self.client = client
        self.bucket = bucket

    @classmethod
    def from_config(cls, config: StorageConfig) -> "SupabaseObjectStore":
        """Create the store from configuration."""
        if not config.url or not config.service_key:
            raise ConfigurationError("Supabase URL and service key must be configured")
        client = create_client(config.url, config.service_key)
        logger.info("Supabase storage client initialized: %s... bucket=%s", config.url[:30], config.bucket)
        return cls(client, config.bucket)

    def _bucket(self):
        return self.client.storage.from_(self.bucket)

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Upload an object, overwriting any existing one at ``path``."""
        try:
            self._bucket().upload(
                path,
                data,
                file_options={"content-type": content_type, "upsert": "true"},
            )
        except Exception as exc:
            raise ObjectStorageError(f"Upload of {path} failed: {exc}") from exc
        logger.debug("Uploaded %s (%d bytes)", path, len(data))
        return path

    def remove(self, paths: list[str]) -> list[str]:
        """Remove objects by path."""
        try:
            self._bucket().remove(paths)
        except Exception as exc:
            raise ObjectStorageError(f"Removal of {paths} failed: {exc}") from exc
        logger.debug("Removed %s", paths)
        return paths

    def public_url(self, path: str) -> str:
        """Return the public URL of an object (no network round-trip)."""
        return self._bucket().get_public_url(path)


__all__ = ["SupabaseObjectStore"]
