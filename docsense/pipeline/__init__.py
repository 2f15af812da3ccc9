# docsense/pipeline/__init__.py
# ============================================================
# Pipeline Package
# ============================================================
# Contains the PipelineOrchestrator that ties classification,
# rasterization, OCR dispatch, aggregation and language
# identification into one run per submitted document.
#
# Key classes:
#   - PipelineOrchestrator: SubmittedDocument → CompletedSubmission
#   - ResultAggregator: page outcomes → document text/boxes/confidence
#   - InMemoryResultStore / JsonResultStore: persistence collaborators
# ============================================================

from docsense.pipeline.aggregator import PAGE_BREAK, AggregatedText, ResultAggregator
from docsense.pipeline.orchestrator import PipelineOrchestrator, PipelineRun, PipelineStage
from docsense.pipeline.storage import InMemoryResultStore, JsonResultStore, ResultStore

__all__ = [
    "PipelineOrchestrator",
    "PipelineRun",
    "PipelineStage",
    "ResultAggregator",
    "AggregatedText",
    "PAGE_BREAK",
    "ResultStore",
    "InMemoryResultStore",
    "JsonResultStore",
]
