# docsense/ocr/__init__.py
# ============================================================
# OCR Package
# ============================================================
# Provides the OCR capability and its concurrent dispatch.
#
# Key classes:
#   - OCRCapability: Abstract "extract text from one image"
#   - ProviderConfig: Injected provider credentials and endpoints
#   - OCRFallbackChain: Primary provider, then fallback on failure
#   - OCRDispatcher: Concurrent per-page fan-out with failure isolation
# ============================================================

from docsense.ocr.providers import (
    GeminiProvider,
    HuggingFaceChatProvider,
    HuggingFaceImageToTextProvider,
    OCRCapability,
    ProviderConfig,
    RecognitionServiceProvider,
    create_provider,
)
from docsense.ocr.capability import OCRFallbackChain
from docsense.ocr.dispatcher import OCRDispatcher

__all__ = [
    "OCRCapability",
    "ProviderConfig",
    "HuggingFaceChatProvider",
    "GeminiProvider",
    "HuggingFaceImageToTextProvider",
    "RecognitionServiceProvider",
    "create_provider",
    "OCRFallbackChain",
    "OCRDispatcher",
]
