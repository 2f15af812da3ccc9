# docsense/document/classifier.py
# ============================================================
# Document Classifier — Selectable vs. Scanned PDFs
# ============================================================
# Reads the embedded text layer of a PDF with pypdf and decides
# whether OCR is needed at all.
#
# Rule:
#   trimmed text longer than `min_chars` → Selectable(text, pages)
#   otherwise, or on any parse failure   → ScannedPages
#
# This is a heuristic. A PDF with a short caption over a scanned
# page is "scanned"; a scanned PDF with a hidden OCR layer is
# "selectable". Both are acceptable outcomes.
# ============================================================

import io
import time
from typing import Optional

from pypdf import PdfReader

from config.settings import settings
from docsense.errors import ClassificationError
from docsense.models import ClassificationDecision, ScannedPages, Selectable
from docsense.utils.logger import get_logger

logger = get_logger(__name__)

PAGE_TEXT_SEPARATOR = "\n\n"


class DocumentClassifier:
    """
    Decides whether a PDF's text can be read directly.

    Example:
        >>> classifier = DocumentClassifier()
        >>> decision = classifier.classify(pdf_bytes)
        >>> isinstance(decision, Selectable)
        True
    """

    def __init__(self, min_chars: Optional[int] = None):
        """
        Args:
            min_chars: Trimmed text must be strictly longer than this for
                       the PDF to count as selectable. Default: from settings.
        """
        self.min_chars = min_chars if min_chars is not None else settings.selectable_text_min_chars

    def classify(self, pdf_bytes: bytes) -> ClassificationDecision:
        """
        Classify a PDF as Selectable or ScannedPages.

        Args:
            pdf_bytes: Raw PDF file content.

        Returns:
            Selectable with the extracted text and the structural page count,
            or ScannedPages.

        Raises:
            ClassificationError: If ``pdf_bytes`` is empty.
        """
        if not pdf_bytes:
            raise ClassificationError("Cannot classify an empty PDF")

        start = time.perf_counter()
        try:
            text, page_count = self._read_text_layer(pdf_bytes)
        except Exception as e:
            # any parse failure fails open to OCR
            logger.warning(
                f"PDF text layer unreadable, treating as scanned: {e.__class__.__name__}: {e}"
            )
            return ScannedPages()

        duration = (time.perf_counter() - start) * 1000
        trimmed = len(text.strip())

        if trimmed > self.min_chars:
            logger.info(
                f"PDF classified as [green]selectable[/green] — "
                f"{trimmed} chars over {page_count} pages ({duration:.0f}ms)"
            )
            return Selectable(text=text, page_count=page_count)

        logger.info(
            f"PDF classified as [yellow]scanned[/yellow] — "
            f"{trimmed} chars of embedded text ({duration:.0f}ms)"
        )
        return ScannedPages()

    @staticmethod
    def _read_text_layer(pdf_bytes: bytes) -> tuple[str, int]:
        """Return the concatenated page text and the page count."""
        reader = PdfReader(io.BytesIO(pdf_bytes))
        texts = [(page.extract_text() or "") for page in reader.pages]
        return PAGE_TEXT_SEPARATOR.join(texts), len(reader.pages)
