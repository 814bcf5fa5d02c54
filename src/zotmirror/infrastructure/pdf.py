"""PDF text extraction and cover rendering with PyMuPDF."""

import logging

import fitz  # PyMuPDF

from zotmirror.core.constants import DEFAULT_COVER_WIDTH
from zotmirror.core.exceptions import PdfExtractionError
from zotmirror.core.models import PdfContent

logger = logging.getLogger(__name__)


def page_text(page: "fitz.Page") -> str:
    """Concatenate a page's text spans, breaking the line when the baseline moves.

    Spans sharing a vertical position are joined directly; a change of
    vertical position starts a new line.
    """
    text = ""
    last_y: float | None = None
    for block in page.get_text("dict").get("blocks", []):
        if block.get("type", 0) != 0:  # image block
            continue
        for line in block.get("lines", []):
            for span in line.get("spans", []):
                y = span["origin"][1]
                if last_y is None or y == last_y:
                    text += span["text"]
                else:
                    text += "\n" + span["text"]
                last_y = y
    return text


class PdfExtractor:
    """Extract full text and render the first page as a PNG cover."""

    def __init__(self, cover_width: int = DEFAULT_COVER_WIDTH):
        self.cover_width = cover_width

    def extract(self, data: bytes) -> PdfContent:
        """Extract text of every page and render page one.

        ``ratio`` is the first page's width / height, or 0 when it cannot be
        determined; callers treat 0 as an unusable cover.

        Raises:
            PdfExtractionError: If the document cannot be opened or parsed.
        """
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                pages = [page_text(page) for page in doc]
                ratio = 0.0
                cover = b""
                if doc.page_count > 0:
                    first = doc[0]
                    width, height = first.rect.width, first.rect.height
                    if width > 0 and height > 0:
                        ratio = width / height
                        cover = self._render(first, ratio)
        except (RuntimeError, ValueError) as exc:
            raise PdfExtractionError(f"Could not parse PDF: {exc}") from exc

        return PdfContent(text="\n\n".join(pages), cover=cover, ratio=ratio)

    def _render(self, page: "fitz.Page", ratio: float) -> bytes:
        target_width = self.cover_width
        target_height = round(target_width / (ratio or 1))
        matrix = fitz.Matrix(target_width / page.rect.width, target_height / page.rect.height)
        pixmap = page.get_pixmap(matrix=matrix, alpha=False)
        logger.debug("Rendered cover %dx%d", pixmap.width, pixmap.height)
        return pixmap.tobytes("png")


__all__ = ["PdfExtractor", "page_text"]
