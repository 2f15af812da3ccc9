# docsense/models.py
# ============================================================
# Pipeline Data Model
# ============================================================
# Immutable records passed between pipeline stages:
#
#   SubmittedDocument  → what the caller hands in
#   PageImage          → one rasterized page (or the submitted image)
#   ExtractedText      → one provider's parsed answer for one image
#   PageOCROutcome     → the dispatcher's record for one page
#   DocumentOCRResult  → the final, persisted result
#   CompletedSubmission→ result + identity assigned by the store
# ============================================================

import mimetypes
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

from docsense.errors import PageOCRError


# ============================================================
# Enums
# ============================================================

class SourceKind(str, Enum):
    """Where a submitted document came from."""
    IMAGE = "image"
    CAMERA = "camera"
    PDF = "pdf"


class ProviderRole(str, Enum):
    """Position of the provider that produced a page's text."""
    PRIMARY = "primary"
    FALLBACK = "fallback"


class PdfType(str, Enum):
    SELECTABLE = "selectable"
    SCANNED = "scanned"


class ConfidenceState(str, Enum):
    """
    Why a page does or does not carry a confidence value.

    NOT_PROVIDED and FAILED are both excluded from the document mean,
    but stay distinct so the two cases can be told apart in logs.
    """
    MEASURED = "measured"
    NOT_PROVIDED = "not_provided"
    FAILED = "failed"


# ============================================================
# Input
# ============================================================

@dataclass(frozen=True)
class SubmittedDocument:
    """
    A document submitted for OCR.

    Attributes:
        content: Raw file bytes.
        mime_type: Declared MIME type (e.g. "image/png", "application/pdf").
        source_kind: image, camera or pdf.
        file_name: Original file name as uploaded.
        file_size: Size in bytes as reported by the intake.
    """
    content: bytes
    mime_type: str
    source_kind: SourceKind
    file_name: str
    file_size: int

    @classmethod
    def from_path(
        cls,
        path: Union[str, Path],
        source_kind: Optional[SourceKind] = None,
    ) -> "SubmittedDocument":
        """
        Build a submission from a file on disk.

        The MIME type is guessed from the extension. When ``source_kind``
        is omitted it is ``pdf`` for PDFs and ``image`` otherwise.
        """
        path = Path(path)
        content = path.read_bytes()
        mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        if source_kind is None:
            source_kind = SourceKind.PDF if mime_type == "application/pdf" else SourceKind.IMAGE
        return cls(
            content=content,
            mime_type=mime_type,
            source_kind=source_kind,
            file_name=path.name,
            file_size=len(content),
        )


# ============================================================
# Classification
# ============================================================

@dataclass(frozen=True)
class Selectable:
    """The PDF has a usable text layer."""
    text: str
    page_count: int


@dataclass(frozen=True)
class ScannedPages:
    """The PDF needs OCR. The page count is known only after rasterization."""
    page_count: Optional[int] = None


ClassificationDecision = Union[Selectable, ScannedPages]


# ============================================================
# Pages & OCR
# ============================================================

@dataclass(frozen=True)
class PageImage:
    """
    One page image handed to the OCR providers.

    Attributes:
        index: 0-based page index within the document.
        content: Encoded image bytes.
        mime_type: MIME type of ``content``.
        width: Width in pixels, if known.
        height: Height in pixels, if known.
    """
    index: int
    content: bytes
    mime_type: str = "image/png"
    width: Optional[int] = None
    height: Optional[int] = None


@dataclass(frozen=True)
class BoundingBox:
    """A recognized text region. The pipeline passes these through untouched."""
    text: str
    polygon: tuple[tuple[float, float], ...]
    confidence: float

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BoundingBox":
        """
        Parse a box from a recognition service payload.

        Accepts the polygon under ``polygon``, ``coordinates`` or ``box``.
        """
        points = data.get("polygon") or data.get("coordinates") or data.get("box") or []
        return cls(
            text=str(data.get("text", "")),
            polygon=tuple((float(x), float(y)) for x, y in points),
            confidence=float(data.get("confidence", 0.0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "coordinates": [[x, y] for x, y in self.polygon],
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class PageConfidence:
    """A page confidence together with the reason it may be missing."""
    state: ConfidenceState
    value: Optional[float] = None

    @classmethod
    def measured(cls, value: float) -> "PageConfidence":
        return cls(ConfidenceState.MEASURED, min(max(float(value), 0.0), 1.0))

    @classmethod
    def not_provided(cls) -> "PageConfidence":
        return cls(ConfidenceState.NOT_PROVIDED)

    @classmethod
    def failed(cls) -> "PageConfidence":
        return cls(ConfidenceState.FAILED)

    @property
    def is_measured(self) -> bool:
        return self.state is ConfidenceState.MEASURED


@dataclass(frozen=True)
class ExtractedText:
    """
    A provider response, parsed once at the provider boundary.

    Multimodal chat providers only ever fill ``text``; boxes stay empty
    and the confidence is NOT_PROVIDED.
    """
    text: str
    boxes: tuple[BoundingBox, ...] = ()
    confidence: PageConfidence = field(default_factory=PageConfidence.not_provided)


@dataclass(frozen=True)
class PageOCROutcome:
    """
    Result of running the provider chain on one page.

    Exactly one outcome exists per page. Failed pages carry ``error``,
    empty text and a FAILED confidence.
    """
    page_index: int
    text: str = ""
    bounding_boxes: tuple[BoundingBox, ...] = ()
    confidence: PageConfidence = field(default_factory=PageConfidence.not_provided)
    provider_used: Optional[ProviderRole] = None
    error: Optional[PageOCRError] = None

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def from_extraction(
        cls, page_index: int, extracted: ExtractedText, role: ProviderRole
    ) -> "PageOCROutcome":
        return cls(
            page_index=page_index,
            text=extracted.text,
            bounding_boxes=extracted.boxes,
            confidence=extracted.confidence,
            provider_used=role,
        )

    @classmethod
    def from_error(cls, page_index: int, error: PageOCRError) -> "PageOCROutcome":
        return cls(
            page_index=page_index,
            confidence=PageConfidence.failed(),
            error=error,
        )


# ============================================================
# Output
# ============================================================

@dataclass(frozen=True)
class DocumentOCRResult:
    """
    Final result of one pipeline run.

    Attributes:
        extracted_text: Document text; pages joined by a page-break marker.
        language_name: e.g. "English" or "Unknown".
        language_code: e.g. "en" or "unknown".
        confidence_score: Document confidence in [0, 1].
        bounding_boxes: Boxes in page order, then in-page order.
        page_count: Number of pages (1 for image inputs).
        source_type: Source kind of the submission.
        processing_time_ms: Wall-clock time from receipt to completion.
        pdf_type: "selectable" or "scanned" for PDFs, None otherwise.
        language_confidence: Coarse confidence of the language label.
        failed_pages: Indices of pages whose OCR failed.
        image_width: Width of a single-image submission, if known.
        image_height: Height of a single-image submission, if known.
    """
    extracted_text: str
    language_name: str
    language_code: str
    confidence_score: float
    bounding_boxes: tuple[BoundingBox, ...]
    page_count: int
    source_type: SourceKind
    processing_time_ms: float
    pdf_type: Optional[PdfType] = None
    language_confidence: float = 0.0
    failed_pages: tuple[int, ...] = ()
    image_width: Optional[int] = None
    image_height: Optional[int] = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the persisted record layout."""
        return {
            "extractedText": self.extracted_text,
            "detectedLanguage": self.language_name,
            "languageCode": self.language_code,
            "confidenceScore": self.confidence_score,
            "sourceType": self.source_type.value,
            "boundingBoxes": [box.to_dict() for box in self.bounding_boxes],
            "metadata": {
                "processingTime": round(self.processing_time_ms, 2),
                "pageCount": self.page_count,
                "pdfType": self.pdf_type.value if self.pdf_type else None,
                "failedPages": list(self.failed_pages),
                "languageConfidence": self.language_confidence,
                "imageWidth": self.image_width,
                "imageHeight": self.image_height,
            },
        }


@dataclass(frozen=True)
class StoredRecord:
    """Identity assigned by the persistence collaborator."""
    id: str
    timestamp: datetime


@dataclass(frozen=True)
class CompletedSubmission:
    """A finished, persisted pipeline run."""
    result: DocumentOCRResult
    record: StoredRecord

    def to_response(self) -> dict[str, Any]:
        """The shape exposed to downstream callers."""
        result = self.result
        response: dict[str, Any] = {
            "id": self.record.id,
            "text": result.extracted_text,
            "language": result.language_name,
            "languageCode": result.language_code,
            "confidence": result.confidence_score,
            "boxes": [box.to_dict() for box in result.bounding_boxes],
            "processingTimeMs": round(result.processing_time_ms, 2),
            "timestamp": self.record.timestamp.isoformat(),
        }
        if result.source_type is SourceKind.PDF:
            response["pageCount"] = result.page_count
            response["pdfType"] = result.pdf_type.value if result.pdf_type else None
        return response
