# docsense/pipeline/aggregator.py
# ============================================================
# Result Aggregator — Pages → One Document
# ============================================================
# Merges per-page OCR outcomes into a single document:
#
#   text       pages sorted by index, joined by PAGE_BREAK;
#              failed pages contribute an empty string
#   boxes      flattened in the same page order
#   confidence mean of measured page confidences; pages whose
#              provider reports none, and failed pages, are
#              left out; 0.0 if nothing was measured
# ============================================================

from dataclasses import dataclass
from typing import Sequence

from docsense.models import BoundingBox, ConfidenceState, PageOCROutcome
from docsense.utils.logger import get_logger

logger = get_logger(__name__)

PAGE_BREAK = "\n\n--- Page Break ---\n\n"


@dataclass(frozen=True)
class AggregatedText:
    """
    Document-level text, boxes and confidence.

    Attributes:
        text: Joined page text.
        boxes: All boxes in page order.
        confidence: Mean of measured page confidences, or 0.0.
        failed_pages: Indices of pages that carried an error.
    """
    text: str
    boxes: tuple[BoundingBox, ...]
    confidence: float
    failed_pages: tuple[int, ...] = ()


class ResultAggregator:
    """Combines page outcomes; input order does not matter."""

    def __init__(self, separator: str = PAGE_BREAK):
        self.separator = separator

    def aggregate(self, outcomes: Sequence[PageOCROutcome]) -> AggregatedText:
        ordered = sorted(outcomes, key=lambda o: o.page_index)

        text = self.separator.join(o.text if o.success else "" for o in ordered)
        boxes = tuple(box for o in ordered if o.success for box in o.bounding_boxes)

        measured = [o.confidence.value for o in ordered if o.confidence.is_measured]
        confidence = sum(measured) / len(measured) if measured else 0.0

        not_provided = sum(1 for o in ordered if o.confidence.state is ConfidenceState.NOT_PROVIDED)
        failed = tuple(o.page_index for o in ordered if not o.success)
        logger.debug(
            f"Aggregated {len(ordered)} pages — confidence {confidence:.3f} "
            f"(measured: {len(measured)}, not provided: {not_provided}, failed: {len(failed)})"
        )

        return AggregatedText(text=text, boxes=boxes, confidence=confidence, failed_pages=failed)
