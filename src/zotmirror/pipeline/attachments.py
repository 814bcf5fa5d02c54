"""PDF attachment pipeline: download, extract, archive.

Per qualifying item::

    CHECK_EXISTING -> (SKIP | DOWNLOAD) -> EXTRACT -> (FAIL_EXTRACT | UPLOAD) -> (FAIL_UPLOAD | DONE)

Every failure is local to its item: the item's bibliographic row is still
written, only the file columns are left as they were.
"""

import logging
import time
import uuid
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TypeVar

from zotmirror.config.settings import SyncConfig
from zotmirror.core.constants import COVER_FILENAME, PDF_CONTENT_TYPE, PNG_CONTENT_TYPE
from zotmirror.core.exceptions import PdfExtractionError
from zotmirror.core.item_types import ATTACHMENT_TYPE
from zotmirror.core.models import PdfContent, RemoteRecord, StoredFileState, UploadedUrls
from zotmirror.core.protocols import ObjectStore, PdfRenderer, RemoteLibrary
from zotmirror.utils.retry import retry_operation
from zotmirror.utils.text import iter_batches, strip_control_chars

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AttachmentStatus(str, Enum):
    DONE = "done"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass
class AttachmentJob:
    """One qualifying attachment and the state persisted for it."""

    record: RemoteRecord
    group_id: str
    stored: StoredFileState | None = None

    @property
    def key(self) -> str:
        return self.record["key"]

    @property
    def parent_key(self) -> str:
        return self.record["data"]["parentItem"]

    @property
    def label(self) -> str:
        return f"{self.parent_key} / {self.key}"

    @property
    def prefix(self) -> str:
        """Object storage folder for this attachment."""
        return f"{self.group_id}/{self.parent_key}/{self.key}"

    def carried_fields(self) -> dict[str, str | None]:
        """File columns kept when this item is not (re)processed."""
        return self.stored.file_fields() if self.stored else {}


@dataclass
class AttachmentResult:
    """Outcome of one job; ``fields`` are file columns to set on the item row."""

    key: str
    status: AttachmentStatus
    fields: dict[str, str | None] = field(default_factory=dict)
    error: str | None = None


def qualifies(record: RemoteRecord) -> bool:
    """Whether a normalized item is a PDF attachment with content to archive."""
    data = record.get("data") or {}
    return (
        data.get("itemType") == ATTACHMENT_TYPE
        and isinstance(data.get("parentItem"), str)
        and bool(data["parentItem"])
        and data.get("contentType") == PDF_CONTENT_TYPE
        and bool(data.get("md5"))
    )


class AttachmentPipeline:
    """Runs attachment jobs in bounded concurrent batches."""

    def __init__(
        self,
        library: RemoteLibrary,
        store: ObjectStore,
        renderer: PdfRenderer,
        config: SyncConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.library = library
        self.store = store
        self.renderer = renderer
        self.config = config
        self.scratch_dir = Path(config.scratch_dir)
        self._sleep = sleep

    def _retry(self, operation: Callable[[], T], description: str) -> T | None:
        return retry_operation(
            operation,
            attempts=self.config.retry_attempts,
            delay=self.config.retry_delay,
            description=description,
            sleep=self._sleep,
        )

    def run(self, jobs: Iterable[AttachmentJob]) -> list[AttachmentResult]:
        """Process jobs, at most ``process_batch_size`` at a time.

        A batch starts only after the previous one has fully settled. Results
        are returned in job order.
        """
        jobs = list(jobs)
        results: list[AttachmentResult] = []
        if not jobs:
            return results
        width = self.config.process_batch_size
        with ThreadPoolExecutor(max_workers=min(width, len(jobs)), thread_name_prefix="attachment") as executor:
            for batch in iter_batches(jobs, width):
                futures = [executor.submit(self.process, job) for job in batch]
                for job, future in zip(batch, futures):
                    try:
                        results.append(future.result())
                    except Exception as exc:
                        logger.exception("• ERROR [%s] Unexpected attachment failure", job.label)
                        results.append(_failed(job, f"unexpected error: {exc}"))
        return results

    def process(self, job: AttachmentJob) -> AttachmentResult:
        """Run the state machine for one attachment."""
        data = job.record["data"]
        carried = job.carried_fields()

        # CHECK_EXISTING
        if job.stored is not None:
            if job.stored.matches(data):
                logger.info("• [%s] File already synchronized", job.label)
                return AttachmentResult(job.key, AttachmentStatus.SKIPPED, carried)
            if job.stored.filename != data.get("filename") and job.stored.url:
                logger.info("• [%s] File name changed, deleting old file", job.label)
                old_path = f"{job.prefix}/{job.stored.url.rsplit('/', 1)[-1]}"
                if self._retry(lambda: self.store.remove([old_path]), f"remove {old_path}") is None:
                    return _failed(job, f"failed to delete old file {old_path}", carried)
                carried = {**carried, "url": None, "fullTextPDF": None}

        # DOWNLOAD
        scratch = self.scratch_dir / f"{job.key}.pdf"
        try:
            pdf_data = self._download(job, scratch)
        finally:
            scratch.unlink(missing_ok=True)
        if pdf_data is None:
            return _failed(job, "failed to download file", carried)

        # EXTRACT
        try:
            content = self.renderer.extract(pdf_data)
        except PdfExtractionError as exc:
            return _failed(job, f"failed to extract PDF content: {exc}", carried)
        if not content.ratio:
            return _failed(job, "failed to extract image dimensions", carried)

        # UPLOAD
        urls = self._upload(job, pdf_data, content)
        if urls is None:
            return _failed(job, "failed to upload to object storage", carried)

        logger.info("• [%s] Archived PDF (%d characters of text)", job.label, len(content.text))
        return AttachmentResult(
            job.key,
            AttachmentStatus.DONE,
            {
                "url": strip_control_chars(urls.pdf_url),
                "fullTextPDF": strip_control_chars(content.text),
                "PDFCoverPageImage": strip_control_chars(urls.cover_url),
            },
        )

    def _download(self, job: AttachmentJob, scratch: Path) -> bytes | None:
        scratch.parent.mkdir(parents=True, exist_ok=True)

        def attempt() -> bytes:
            scratch.unlink(missing_ok=True)
            path = self.library.download_attachment(job.group_id, job.key, scratch)
            return Path(path).read_bytes()

        return self._retry(attempt, f"download {job.key}")

    def _upload(self, job: AttachmentJob, pdf_data: bytes, content: PdfContent) -> UploadedUrls | None:
        # Fresh name per revision; the cover name is fixed and overwritten
        pdf_path = f"{job.prefix}/{uuid.uuid4()}.pdf"
        cover_path = f"{job.prefix}/{COVER_FILENAME}"

        if self._retry(lambda: self.store.upload(pdf_path, pdf_data, PDF_CONTENT_TYPE), f"upload {pdf_path}") is None:
            logger.warning("• ERROR [%s] Failed to upload PDF", job.label)
            return None
        if (
            self._retry(lambda: self.store.upload(cover_path, content.cover, PNG_CONTENT_TYPE), f"upload {cover_path}")
            is None
        ):
            logger.warning("• ERROR [%s] Failed to upload cover", job.label)
            return None

        return UploadedUrls(
            pdf_url=self.store.public_url(pdf_path),
            cover_url=self.store.public_url(cover_path),
        )


def _failed(job: AttachmentJob, reason: str, fields: dict[str, str | None] | None = None) -> AttachmentResult:
    logger.warning("• ERROR [%s] %s", job.label, reason)
    return AttachmentResult(
        job.key,
        AttachmentStatus.FAILED,
        job.carried_fields() if fields is None else fields,
        error=reason,
    )


__all__ = [
    "AttachmentJob",
    "AttachmentPipeline",
    "AttachmentResult",
    "AttachmentStatus",
    "qualifies",
]
