# docsense/document/__init__.py
# ============================================================
# Document Handling Package
# ============================================================
# Turns a submitted PDF into something the OCR stage can use:
#   - DocumentClassifier: selectable text layer vs. scanned pages
#   - PageRasterizer: scanned PDF → PNG page images (pdf2image)
# ============================================================

from docsense.document.classifier import DocumentClassifier
from docsense.document.rasterizer import PageRasterizer

__all__ = ["DocumentClassifier", "PageRasterizer"]
