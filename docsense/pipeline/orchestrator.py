# docsense/pipeline/orchestrator.py
# ============================================================
# Pipeline Orchestrator — One Submitted Document, End to End
# ============================================================
# Sequences the pipeline stages for a single submission:
#
#   Received → Classifying ─┬─ Extracting (selectable PDF) ───────────┐
#                           └─ Rasterizing → Dispatching → Aggregating ┤
#   Received → Dispatching → Aggregating (image / camera) ─────────────┤
#                                                                      ▼
#                                              Identifying → Completed
#
# Any stage error is fatal (→ Failed) except per-page OCR failures
# inside a multi-page dispatch, which blank that page. Nothing is
# persisted for a failed run. The orchestrator keeps no state
# between documents; each call gets its own PipelineRun.
#
# Usage:
#   from docsense.pipeline.orchestrator import PipelineOrchestrator
#   pipeline = PipelineOrchestrator()
#   completed = await pipeline.process(SubmittedDocument.from_path("scan.pdf"))
#   completed.to_response()
# ============================================================

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from docsense.document.classifier import DocumentClassifier
from docsense.document.rasterizer import PageRasterizer
from docsense.errors import ClassificationError
from docsense.language.identifier import LanguageIdentifier
from docsense.models import (
    BoundingBox,
    CompletedSubmission,
    DocumentOCRResult,
    PageImage,
    PdfType,
    Selectable,
    SourceKind,
    SubmittedDocument,
)
from docsense.ocr.capability import OCRFallbackChain
from docsense.ocr.dispatcher import OCRDispatcher
from docsense.pipeline.aggregator import ResultAggregator
from docsense.pipeline.storage import InMemoryResultStore, ResultStore
from docsense.utils.image import probe_size
from docsense.utils.logger import get_logger

logger = get_logger(__name__)

# A text layer carries no recognizer uncertainty
SELECTABLE_CONFIDENCE = 0.95


class PipelineStage(str, Enum):
    RECEIVED = "received"
    CLASSIFYING = "classifying"
    EXTRACTING = "extracting"
    RASTERIZING = "rasterizing"
    DISPATCHING = "dispatching"
    AGGREGATING = "aggregating"
    IDENTIFYING = "identifying"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class PipelineRun:
    """
    Bookkeeping for one submission: current stage, stage history and
    the clock used for ``processing_time_ms``.
    """
    file_name: str
    stage: PipelineStage = PipelineStage.RECEIVED
    history: list[PipelineStage] = field(default_factory=lambda: [PipelineStage.RECEIVED])
    started_at: float = field(default_factory=time.perf_counter)
    error: Optional[BaseException] = None

    def advance(self, stage: PipelineStage) -> None:
        self.stage = stage
        self.history.append(stage)
        logger.debug(f"{self.file_name}: {stage.value}")

    def fail(self, error: BaseException) -> None:
        self.error = error
        self.advance(PipelineStage.FAILED)

    @property
    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self.started_at) * 1000


@dataclass(frozen=True)
class _DocumentText:
    """Stage output handed to language identification."""
    text: str
    boxes: tuple[BoundingBox, ...]
    confidence: float
    page_count: int
    pdf_type: Optional[PdfType] = None
    failed_pages: tuple[int, ...] = ()
    image_width: Optional[int] = None
    image_height: Optional[int] = None


class PipelineOrchestrator:
    """
    End-to-end document OCR pipeline.

    Coordinates the classifier, rasterizer, dispatcher, aggregator and
    language identifier, then hands the result to a ResultStore.

    Flow:
        1. PDF → DocumentClassifier.classify()
        2. Selectable → use the text layer (confidence 0.95)
           Scanned → PageRasterizer.rasterize() → OCRDispatcher.dispatch_all()
           → ResultAggregator.aggregate()
        3. Image / camera → one page through the dispatcher
        4. LanguageIdentifier.identify()
        5. ResultStore.save()

    Example:
        >>> pipeline = PipelineOrchestrator(store=JsonResultStore("output/"))
        >>> completed = await pipeline.process(document)
        >>> completed.result.page_count
        2
    """

    def __init__(
        self,
        classifier: Optional[DocumentClassifier] = None,
        rasterizer: Optional[PageRasterizer] = None,
        dispatcher: Optional[OCRDispatcher] = None,
        aggregator: Optional[ResultAggregator] = None,
        identifier: Optional[LanguageIdentifier] = None,
        store: Optional[ResultStore] = None,
    ):
        """
        Initialize the pipeline. Missing collaborators are built from settings.
        """
        self.classifier = classifier or DocumentClassifier()
        self.rasterizer = rasterizer or PageRasterizer()
        self.dispatcher = dispatcher or OCRDispatcher(OCRFallbackChain.from_settings())
        self.aggregator = aggregator or ResultAggregator()
        self.identifier = identifier or LanguageIdentifier()
        self.store = store or InMemoryResultStore()

        logger.info("PipelineOrchestrator initialized")

    async def aclose(self) -> None:
        """Close the providers' HTTP clients."""
        await self.dispatcher.chain.aclose()

    async def process(
        self,
        document: SubmittedDocument,
        timeout: Optional[float] = None,
    ) -> CompletedSubmission:
        """
        Run one submitted document through the pipeline.

        Args:
            document: The submission to process.
            timeout: Optional limit in seconds for the whole run. On expiry
                     the run is aborted and temporary page storage released.

        Returns:
            The persisted result and its assigned identity.

        Raises:
            ClassificationError: Unsupported source kind or empty PDF.
            RasterizationError: A scanned PDF could not be rendered.
            PageOCRError: The single page of an image submission failed OCR.
            asyncio.TimeoutError: ``timeout`` expired.
        """
        run = PipelineRun(file_name=document.file_name)
        logger.info(
            f"Pipeline starting — file: [bold]{document.file_name}[/bold], "
            f"source: {getattr(document.source_kind, 'value', document.source_kind)}, "
            f"{document.file_size} bytes"
        )

        try:
            if timeout is not None:
                completed = await asyncio.wait_for(self._run(document, run), timeout)
            else:
                completed = await self._run(document, run)
        except Exception as e:
            run.fail(e)
            logger.error(
                f"Pipeline failed for [bold]{document.file_name}[/bold] "
                f"after {run.elapsed_ms:.0f}ms: {e.__class__.__name__}: {e}"
            )
            raise

        logger.info(
            f"Pipeline complete — {completed.result.page_count} page(s), "
            f"confidence {completed.result.confidence_score:.2f}, "
            f"language {completed.result.language_name}, "
            f"{completed.result.processing_time_ms:.0f}ms"
        )
        return completed

    async def _run(self, document: SubmittedDocument, run: PipelineRun) -> CompletedSubmission:
        try:
            kind = SourceKind(document.source_kind)
        except ValueError as e:
            raise ClassificationError(f"Unsupported source kind: {document.source_kind!r}") from e

        if kind is SourceKind.PDF:
            extracted = await self._process_pdf(document, run)
        else:
            extracted = await self._process_image(document, run)

        run.advance(PipelineStage.IDENTIFYING)
        language = self.identifier.identify(extracted.text)

        result = DocumentOCRResult(
            extracted_text=extracted.text,
            language_name=language.name,
            language_code=language.code,
            confidence_score=extracted.confidence,
            bounding_boxes=extracted.boxes,
            page_count=extracted.page_count,
            source_type=kind,
            processing_time_ms=run.elapsed_ms,
            pdf_type=extracted.pdf_type,
            language_confidence=language.confidence,
            failed_pages=extracted.failed_pages,
            image_width=extracted.image_width,
            image_height=extracted.image_height,
        )

        record = self.store.save(result, kind, document.file_name, document.file_size)
        run.advance(PipelineStage.COMPLETED)
        return CompletedSubmission(result=result, record=record)

    async def _process_pdf(self, document: SubmittedDocument, run: PipelineRun) -> _DocumentText:
        run.advance(PipelineStage.CLASSIFYING)
        decision = self.classifier.classify(document.content)

        if isinstance(decision, Selectable):
            run.advance(PipelineStage.EXTRACTING)
            return _DocumentText(
                text=decision.text,
                boxes=(),
                confidence=SELECTABLE_CONFIDENCE,
                page_count=decision.page_count,
                pdf_type=PdfType.SELECTABLE,
            )

        run.advance(PipelineStage.RASTERIZING)
        async with self.rasterizer.rasterize(document.content) as pages:
            run.advance(PipelineStage.DISPATCHING)
            outcomes = await self.dispatcher.dispatch_all(pages)

            run.advance(PipelineStage.AGGREGATING)
            aggregated = self.aggregator.aggregate(outcomes)
            page_count = len(pages)

        if aggregated.failed_pages:
            logger.warning(
                f"{len(aggregated.failed_pages)}/{page_count} pages of "
                f"{document.file_name} failed OCR and were left blank"
            )

        return _DocumentText(
            text=aggregated.text,
            boxes=aggregated.boxes,
            confidence=aggregated.confidence,
            page_count=page_count,
            pdf_type=PdfType.SCANNED,
            failed_pages=aggregated.failed_pages,
        )

    async def _process_image(self, document: SubmittedDocument, run: PipelineRun) -> _DocumentText:
        size = probe_size(document.content)
        width, height = size if size else (None, None)
        page = PageImage(
            index=0,
            content=document.content,
            mime_type=document.mime_type,
            width=width,
            height=height,
        )

        run.advance(PipelineStage.DISPATCHING)
        outcomes = await self.dispatcher.dispatch_all([page])

        # A single image has no other pages to degrade to
        if outcomes[0].error is not None:
            raise outcomes[0].error

        run.advance(PipelineStage.AGGREGATING)
        aggregated = self.aggregator.aggregate(outcomes)

        return _DocumentText(
            text=aggregated.text,
            boxes=aggregated.boxes,
            confidence=aggregated.confidence,
            page_count=1,
            image_width=width,
            image_height=height,
        )
