# tests/test_storage.py
# ============================================================
# Unit Tests — Result Stores
# ============================================================

import json

from docsense.models import BoundingBox, DocumentOCRResult, PdfType, SourceKind
from docsense.pipeline.storage import InMemoryResultStore, JsonResultStore


def _result() -> DocumentOCRResult:
    return DocumentOCRResult(
        extracted_text="Invoice 42",
        language_name="English",
        language_code="en",
        confidence_score=0.9,
        bounding_boxes=(BoundingBox(text="Invoice", polygon=((0, 0), (40, 10)), confidence=0.9),),
        page_count=2,
        source_type=SourceKind.PDF,
        processing_time_ms=123.456,
        pdf_type=PdfType.SCANNED,
        failed_pages=(1,),
    )


class TestInMemoryResultStore:

    def test_assigns_unique_ids(self):
        store = InMemoryResultStore()
        first = store.save(_result(), SourceKind.PDF, "a.pdf", 10)
        second = store.save(_result(), SourceKind.PDF, "a.pdf", 10)
        assert first.id != second.id
        assert store.records[first.id]["fileName"] == "a.pdf"


class TestJsonResultStore:

    def test_writes_one_file_per_result(self, tmp_path):
        store = JsonResultStore(tmp_path / "results")
        record = store.save(_result(), SourceKind.PDF, "scan.pdf", 2048)

        path = tmp_path / "results" / f"{record.id}.json"
        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["id"] == record.id
        assert data["extractedText"] == "Invoice 42"
        assert data["detectedLanguage"] == "English"
        assert data["fileName"] == "scan.pdf"
        assert data["fileSize"] == 2048
        assert data["metadata"]["pageCount"] == 2
        assert data["metadata"]["pdfType"] == "scanned"
        assert data["metadata"]["failedPages"] == [1]
        assert data["boundingBoxes"][0]["coordinates"] == [[0, 0], [40, 10]]
        assert data["timestamp"] == record.timestamp.isoformat()
