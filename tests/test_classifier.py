# tests/test_classifier.py
# ============================================================
# Unit Tests — Document Classifier
# ============================================================
# Uses small hand-built PDFs: text PDFs with a Helvetica text
# line per page, and image-only PDFs rendered by Pillow.
#
# Run:
#   pytest tests/test_classifier.py -v
# ============================================================

import pytest

from docsense.document import classifier as classifier_module
from docsense.document.classifier import DocumentClassifier
from docsense.errors import ClassificationError
from docsense.models import ScannedPages, Selectable
from helpers import make_image_pdf, make_text_pdf


@pytest.fixture
def classifier():
    return DocumentClassifier(min_chars=50)


# ============================================================
# Threshold
# ============================================================

class TestThreshold:
    """The selectable/scanned boundary sits at 50 trimmed characters."""

    def test_51_characters_is_selectable(self, classifier):
        text = "A" * 51
        decision = classifier.classify(make_text_pdf(text))
        assert isinstance(decision, Selectable)
        assert decision.text.strip() == text

    def test_50_characters_is_scanned(self, classifier):
        decision = classifier.classify(make_text_pdf("A" * 50))
        assert isinstance(decision, ScannedPages)

    def test_short_text_is_scanned(self, classifier):
        decision = classifier.classify(make_text_pdf("Page 1"))
        assert isinstance(decision, ScannedPages)
        assert decision.page_count is None

    def test_long_sentence_is_selectable(self, classifier):
        text = "Hello World, this is a long test document with enough characters."
        decision = classifier.classify(make_text_pdf(text))
        assert isinstance(decision, Selectable)
        assert decision.text.strip() == text
        assert decision.page_count == 1

    def test_custom_threshold(self):
        decision = DocumentClassifier(min_chars=5).classify(make_text_pdf("Invoice"))
        assert isinstance(decision, Selectable)


# ============================================================
# Page counting
# ============================================================

class TestPageCount:

    def test_page_count_comes_from_pdf_structure(self, classifier):
        pdf = make_text_pdf(
            "First page of a report with a reasonable amount of text.",
            "",
            "Third page.",
        )
        decision = classifier.classify(pdf)
        assert isinstance(decision, Selectable)
        assert decision.page_count == 3

    def test_text_from_all_pages_is_combined(self, classifier):
        pdf = make_text_pdf("Alpha section of the document", "Beta section of the document")
        decision = classifier.classify(pdf)
        assert isinstance(decision, Selectable)
        assert "Alpha section" in decision.text
        assert "Beta section" in decision.text


# ============================================================
# Failure handling
# ============================================================

class TestFailures:

    def test_image_only_pdf_is_scanned(self, classifier):
        decision = classifier.classify(make_image_pdf(2))
        assert isinstance(decision, ScannedPages)

    def test_unparseable_bytes_fall_back_to_scanned(self, classifier):
        decision = classifier.classify(b"this is not a pdf at all")
        assert isinstance(decision, ScannedPages)

    def test_truncated_pdf_falls_back_to_scanned(self, classifier):
        pdf = make_text_pdf("Hello World, this is a long test document with enough characters.")
        decision = classifier.classify(pdf[:40])
        assert isinstance(decision, ScannedPages)

    def test_empty_input_raises(self, classifier):
        with pytest.raises(ClassificationError):
            classifier.classify(b"")

    @pytest.mark.parametrize(
        "error",
        [
            IndexError("list index out of range"),
            AttributeError("'NullObject' object has no attribute 'get'"),
            ZeroDivisionError("float division by zero"),
            RecursionError("maximum recursion depth exceeded"),
        ],
    )
    def test_reader_crash_falls_back_to_scanned(self, classifier, monkeypatch, error):
        class BrokenReader:
            def __init__(self, stream):
                raise error

        monkeypatch.setattr(classifier_module, "PdfReader", BrokenReader)
        decision = classifier.classify(make_text_pdf("Hello World, this is a long test document with enough characters."))
        assert isinstance(decision, ScannedPages)
