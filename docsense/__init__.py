# docsense/__init__.py
# ============================================================
# docsense — Document Ingestion & OCR Orchestration
# ============================================================
# Root package. Sub-packages:
#   - docsense.document  → PDF classification and rasterization
#   - docsense.ocr       → OCR providers, fallback chain, dispatcher
#   - docsense.pipeline  → Aggregation, orchestration, result stores
#   - docsense.language  → Language identification
#   - docsense.utils     → Shared utilities (logging, image helpers)
# ============================================================

__version__ = "0.1.0"
