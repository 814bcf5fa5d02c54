"""Zotero Web API client for group libraries."""

import logging
import time
from collections.abc import Iterable
from pathlib import Path

import requests

from zotmirror.config.settings import ZoteroConfig
from zotmirror.core.constants import (
    DEFAULT_DOWNLOAD_TIMEOUT,
    DEFAULT_HTTP_TIMEOUT,
    USER_AGENT,
    ZOTERO_API_BASE,
    ZOTERO_API_VERSION,
)
from zotmirror.core.exceptions import SourceFetchError
from zotmirror.core.models import RemoteRecord
from zotmirror.infrastructure.http import HTTPClient

logger = logging.getLogger(__name__)

# Retryable HTTP status codes for Zotero API
RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


class ZoteroClient:
    """Zotero Web API client scoped to the groups of one user."""

    def __init__(self, config: ZoteroConfig, http: HTTPClient | None = None):
        self.config = config
        self.http = http or HTTPClient(
            headers={
                "Zotero-API-Version": ZOTERO_API_VERSION,
                "Authorization": f"Bearer {config.api_key}",
                "User-Agent": USER_AGENT,
            },
            timeout=DEFAULT_HTTP_TIMEOUT,
            max_retries=3,
            retryable_statuses=RETRYABLE_STATUSES,
        )
        self.base_user_url = f"{ZOTERO_API_BASE}/users/{config.user_id}"
        self.polite_delay = config.polite_delay_ms / 1000

    def close(self) -> None:
        """Release the pooled HTTP session."""
        self.http.close()

    def group_url(self, group_id: str | int) -> str:
        return f"{ZOTERO_API_BASE}/groups/{group_id}"

    def iter_pages(self, url: str, params: dict | None = None) -> Iterable[requests.Response]:
        """Iterate over paginated responses following ``Link: rel="next"``."""
        params = {"limit": self.config.page_size, **(params or {})}
        next_url: str | None = url
        while next_url:
            resp = self.http.get(next_url, params=params if next_url == url else None)
            if resp.status_code >= 400:
                raise SourceFetchError("zotero", f"GET {next_url} returned HTTP {resp.status_code}")
            yield resp
            next_url = _parse_next_link(resp.headers.get("Link"))
            if next_url:
                time.sleep(self.polite_delay)

    def fetch_groups(self) -> list[RemoteRecord]:
        """Fetch all groups the user belongs to."""
        groups: list[RemoteRecord] = []
        for resp in self.iter_pages(f"{self.base_user_url}/groups"):
            groups.extend(resp.json())
        logger.info("Fetched %d groups", len(groups))
        return groups

    def fetch_items(self, group_id: str | int, since_version: int | None = None) -> tuple[list[list[RemoteRecord]], int]:
        """Fetch items changed since ``since_version``, one list per page.

        Returns:
            The pages of item records and the library's Last-Modified-Version.
        """
        params: dict = {"includeTrashed": 1}
        if since_version:
            params["since"] = since_version
        pages: list[list[RemoteRecord]] = []
        last_version = since_version or 0
        for resp in self.iter_pages(f"{self.group_url(group_id)}/items", params):
            pages.append(resp.json())
            last_version = max(last_version, _last_modified_version(resp))
        logger.info(
            "Fetched %d items for group %s since version %s (library version %d)",
            sum(len(page) for page in pages),
            group_id,
            since_version,
            last_version,
        )
        return pages, last_version

    def fetch_collections(self, group_id: str | int, since_version: int = 0) -> list[RemoteRecord]:
        """Fetch collections changed since ``since_version``, trashed ones included."""
        params = {"since": since_version, "includeTrashed": 1}
        collections: list[RemoteRecord] = []
        for resp in self.iter_pages(f"{self.group_url(group_id)}/collections", params):
            collections.extend(resp.json())
        logger.info("Fetched %d collections for group %s since version %d", len(collections), group_id, since_version)
        return collections

    def download_attachment(self, group_id: str | int, item_key: str, dest: Path) -> Path:
        """Stream an attachment's file to ``dest``.

        Raises:
            SourceFetchError: If the file endpoint does not return content.
        """
        url = f"{self.group_url(group_id)}/items/{item_key}/file"
        resp = self.http.get(url, stream=True, timeout=DEFAULT_DOWNLOAD_TIMEOUT)
        if resp.status_code != 200:
            raise SourceFetchError("zotero", f"download of {item_key} returned HTTP {resp.status_code}")
        dest.parent.mkdir(parents=True, exist_ok=True)
        with resp, dest.open("wb") as fh:
            for chunk in resp.iter_content(chunk_size=64 * 1024):
                fh.write(chunk)
        return dest


def _last_modified_version(resp: requests.Response) -> int:
    try:
        return int(resp.headers.get("Last-Modified-Version", 0))
    except (TypeError, ValueError):
        return 0


def _parse_next_link(link_header: str | None) -> str | None:
    """Parse Link header for next page URL."""
    if not link_header:
        return None
    parts = [part.strip() for part in link_header.split(",")]
    for part in parts:
        if 'rel="next"' in part:
            url_part = part.split(";")[0].strip()
            if url_part.startswith("<") and url_part.endswith(">"):
                return url_part[1:-1]
    return None


__all__ = ["ZoteroClient"]
