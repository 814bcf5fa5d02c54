"""Shared HTTP client with retry support."""

import logging
from collections.abc import Iterable

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from zotmirror.core.constants import DEFAULT_HTTP_TIMEOUT

logger = logging.getLogger(__name__)

DEFAULT_RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


class HTTPClient:
    """Thin wrapper around ``requests.Session`` with retries and default headers."""

    def __init__(
        self,
        headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        max_retries: int = 3,
        backoff_factor: float = 1.0,
        retryable_statuses: Iterable[int] = DEFAULT_RETRYABLE_STATUSES,
    ):
        self.timeout = timeout
        self.session = requests.Session()
        if headers:
            self.session.headers.update(headers)
        retry = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=sorted(retryable_statuses),
            allowed_methods=frozenset({"GET", "HEAD"}),
            respect_retry_after_header=True,
            raise_on_status=False,
        )
        adapter = HTTPAdapter(max_retries=retry)
        self.session.mount("https://", adapter)
        self.session.mount("http://", adapter)

    def get(
        self,
        url: str,
        *,
        params: dict | None = None,
        headers: dict[str, str] | None = None,
        stream: bool = False,
        timeout: float | None = None,
    ) -> requests.Response:
        """Issue a GET request."""
        logger.debug("GET %s params=%s", url, params)
        return self.session.get(
            url,
            params=params,
            headers=headers,
            stream=stream,
            timeout=timeout or self.timeout,
        )

    def close(self) -> None:
        self.session.close()


__all__ = ["HTTPClient", "DEFAULT_RETRYABLE_STATUSES"]
