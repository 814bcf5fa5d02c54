"""Tests for the PDF attachment pipeline."""

import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from zotmirror.core.exceptions import ObjectStorageError, PdfExtractionError, SourceFetchError
from zotmirror.core.models import PdfContent, StoredFileState
from zotmirror.pipeline.attachments import AttachmentJob, AttachmentPipeline, AttachmentStatus, qualifies
from zotmirror.pipeline.normalize import normalize_item_type

from .factories import GROUP_ID, make_attachment, make_item

PDF_BYTES = b"%PDF-1.4 test document"


def _record(key: str = "ATTACH01", **kwargs):
    record = make_attachment(key, parent="PARENT01", **kwargs)
    normalize_item_type(record)
    return record


def _stored(**overrides) -> StoredFileState:
    fields = {
        "key": "ATTACH01",
        "md5": "9e107d9d372bb6826bd81d3542a419d6",
        "mtime": "1700000000000",
        "filename": "paper.pdf",
        "url": f"https://cdn.example/{GROUP_ID}/PARENT01/ATTACH01/old-uuid.pdf",
        "fullTextPDF": "previous text",
        "PDFCoverPageImage": f"https://cdn.example/{GROUP_ID}/PARENT01/ATTACH01/cover.png",
    }
    fields.update(overrides)
    return StoredFileState(**fields)


def _download_to(dest_data: bytes = PDF_BYTES):
    def download(group_id, item_key, dest: Path) -> Path:
        dest.write_bytes(dest_data)
        return dest

    return download


@pytest.fixture
def library():
    mock = MagicMock()
    mock.download_attachment.side_effect = _download_to()
    return mock


@pytest.fixture
def store():
    mock = MagicMock()
    mock.upload.side_effect = lambda path, data, content_type: path
    mock.remove.side_effect = lambda paths: paths
    mock.public_url.side_effect = lambda path: f"https://cdn.example/{path}"
    return mock


@pytest.fixture
def renderer():
    mock = MagicMock()
    mock.extract.return_value = PdfContent(text="Abstract\x07\nBody", cover=b"\x89PNG cover", ratio=0.7727)
    return mock


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def pipeline(library, store, renderer, sync_config, sleeps):
    return AttachmentPipeline(library, store, renderer, sync_config, sleep=sleeps.append)


class TestQualifies:
    def test_pdf_attachment_with_parent(self):
        assert qualifies(_record())

    def test_requires_parent(self):
        record = make_attachment("ATTACH01", parent="")
        normalize_item_type(record)
        assert not qualifies(record)

    def test_requires_pdf_content_type(self):
        assert not qualifies(_record(contentType="text/html"))

    def test_requires_md5(self):
        assert not qualifies(_record(md5=None))

    def test_requires_attachment_type(self):
        record = make_item("ITEM0001", parentItem="PARENT01", contentType="application/pdf", md5="abc")
        normalize_item_type(record)
        assert not qualifies(record)


class TestProcess:
    def test_unchanged_file_is_skipped_without_network_calls(self, pipeline, library, store, renderer):
        stored = _stored()
        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID), stored))

        assert result.status is AttachmentStatus.SKIPPED
        assert result.fields == stored.file_fields()
        library.download_attachment.assert_not_called()
        store.upload.assert_not_called()
        store.remove.assert_not_called()
        renderer.extract.assert_not_called()

    def test_new_file_is_archived(self, pipeline, store, renderer, sync_config):
        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID)))

        assert result.status is AttachmentStatus.DONE
        prefix = f"https://cdn.example/{GROUP_ID}/PARENT01/ATTACH01/"
        assert result.fields["url"].startswith(prefix)
        assert result.fields["url"].endswith(".pdf")
        assert result.fields["PDFCoverPageImage"] == prefix + "cover.png"
        assert result.fields["fullTextPDF"] == "AbstractBody"
        renderer.extract.assert_called_once_with(PDF_BYTES)

        uploads = [call.args for call in store.upload.call_args_list]
        assert uploads[0][1:] == (PDF_BYTES, "application/pdf")
        assert uploads[1] == (f"{GROUP_ID}/PARENT01/ATTACH01/cover.png", b"\x89PNG cover", "image/png")

    def test_scratch_file_is_removed(self, pipeline, sync_config):
        pipeline.process(AttachmentJob(_record(), str(GROUP_ID)))

        assert not (Path(sync_config.scratch_dir) / "ATTACH01.pdf").exists()

    def test_each_revision_gets_a_fresh_object_name(self, pipeline):
        first = pipeline.process(AttachmentJob(_record(), str(GROUP_ID)))
        second = pipeline.process(AttachmentJob(_record(md5="other"), str(GROUP_ID)))

        assert first.fields["url"] != second.fields["url"]

    def test_download_exhaustion_fails_item(self, pipeline, library, store, sleeps, sync_config):
        library.download_attachment.side_effect = SourceFetchError("zotero", "HTTP 503")

        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID)))

        assert result.status is AttachmentStatus.FAILED
        assert result.fields == {}
        assert library.download_attachment.call_count == sync_config.retry_attempts
        assert len(sleeps) == sync_config.retry_attempts - 1
        store.upload.assert_not_called()
        assert not (Path(sync_config.scratch_dir) / "ATTACH01.pdf").exists()

    def test_download_recovers_within_budget(self, pipeline, library):
        failures = [SourceFetchError("zotero", "timeout")]

        def flaky(group_id, item_key, dest):
            if failures:
                raise failures.pop()
            return _download_to()(group_id, item_key, dest)

        library.download_attachment.side_effect = flaky

        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID)))

        assert result.status is AttachmentStatus.DONE
        assert library.download_attachment.call_count == 2

    def test_changed_file_failure_carries_previous_fields(self, pipeline, library):
        library.download_attachment.side_effect = SourceFetchError("zotero", "HTTP 404")
        stored = _stored(md5="outdated")

        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID), stored))

        assert result.status is AttachmentStatus.FAILED
        assert result.fields == stored.file_fields()

    def test_extraction_error_fails_item(self, pipeline, renderer, store):
        renderer.extract.side_effect = PdfExtractionError("broken xref")

        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID)))

        assert result.status is AttachmentStatus.FAILED
        assert "broken xref" in result.error
        store.upload.assert_not_called()

    def test_zero_ratio_fails_item(self, pipeline, renderer, store):
        renderer.extract.return_value = PdfContent(text="text", cover=b"", ratio=0)

        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID)))

        assert result.status is AttachmentStatus.FAILED
        store.upload.assert_not_called()

    def test_upload_exhaustion_fails_item(self, pipeline, store, sync_config):
        store.upload.side_effect = ObjectStorageError("bucket unavailable")

        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID)))

        assert result.status is AttachmentStatus.FAILED
        assert result.fields == {}
        assert store.upload.call_count == sync_config.retry_attempts

    def test_cover_upload_failure_fails_item(self, pipeline, store):
        def upload(path, data, content_type):
            if path.endswith("cover.png"):
                raise ObjectStorageError("quota exceeded")
            return path

        store.upload.side_effect = upload

        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID)))

        assert result.status is AttachmentStatus.FAILED
        store.public_url.assert_not_called()

    def test_renamed_file_removes_old_object(self, pipeline, store):
        stored = _stored(filename="draft.pdf")

        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID), stored))

        store.remove.assert_called_once_with([f"{GROUP_ID}/PARENT01/ATTACH01/old-uuid.pdf"])
        assert result.status is AttachmentStatus.DONE
        assert "old-uuid" not in result.fields["url"]

    def test_renamed_file_removal_failure_fails_item(self, pipeline, store, library):
        store.remove.side_effect = ObjectStorageError("forbidden")
        stored = _stored(filename="draft.pdf")

        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID), stored))

        assert result.status is AttachmentStatus.FAILED
        assert result.fields == stored.file_fields()
        library.download_attachment.assert_not_called()

    def test_failure_after_removal_clears_url_and_text(self, pipeline, library):
        library.download_attachment.side_effect = SourceFetchError("zotero", "HTTP 500")
        stored = _stored(filename="draft.pdf")

        result = pipeline.process(AttachmentJob(_record(), str(GROUP_ID), stored))

        assert result.status is AttachmentStatus.FAILED
        assert result.fields["url"] is None
        assert result.fields["fullTextPDF"] is None
        assert result.fields["PDFCoverPageImage"] == stored.PDFCoverPageImage


class TestRun:
    def test_results_follow_job_order(self, pipeline):
        jobs = [AttachmentJob(_record(f"ATTACH0{index}"), str(GROUP_ID)) for index in range(5)]

        results = pipeline.run(jobs)

        assert [r.key for r in results] == [job.key for job in jobs]
        assert all(r.status is AttachmentStatus.DONE for r in results)

    def test_batches_are_bounded_and_settle_before_the_next(self, pipeline, library, sync_config):
        width = sync_config.process_batch_size
        jobs = [AttachmentJob(_record(f"ATTACH0{index}"), str(GROUP_ID)) for index in range(2 * width + 1)]
        batches = [[job.key for job in jobs[start : start + width]] for start in range(0, len(jobs), width)]

        lock = threading.Lock()
        state = {"active": 0, "peak": 0}
        events = []
        # full batches only start downloading once every member is in flight
        barrier = threading.Barrier(width, timeout=5)
        gated = {key for batch in batches if len(batch) == width for key in batch}
        download = library.download_attachment.side_effect

        def gated_download(group_id, item_key, dest):
            if item_key in gated:
                barrier.wait()
            return download(group_id, item_key, dest)

        library.download_attachment.side_effect = gated_download
        process = pipeline.process

        def tracked(job):
            with lock:
                state["active"] += 1
                state["peak"] = max(state["peak"], state["active"])
                events.append(("start", job.key))
            try:
                return process(job)
            finally:
                with lock:
                    state["active"] -= 1
                    events.append(("end", job.key))

        pipeline.process = tracked

        results = pipeline.run(jobs)

        assert all(r.status is AttachmentStatus.DONE for r in results)
        assert state["peak"] == width
        position = {event: index for index, event in enumerate(events)}
        for earlier, later in zip(batches, batches[1:]):
            assert max(position[("end", key)] for key in earlier) < min(position[("start", key)] for key in later)

    def test_unexpected_error_becomes_failure(self, pipeline, renderer):
        renderer.extract.side_effect = RuntimeError("segfault in renderer")

        results = pipeline.run([AttachmentJob(_record(), str(GROUP_ID))])

        assert results[0].status is AttachmentStatus.FAILED
        assert "segfault" in results[0].error

    def test_empty_job_list(self, pipeline):
        assert pipeline.run([]) == []
