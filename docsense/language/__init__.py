# docsense/language/__init__.py
# ============================================================
# Language Identification Package
# ============================================================
# Labels OCR output with English, Tamil, Hindi or Unknown.
# ============================================================

from docsense.language.identifier import (
    SUPPORTED_LANGUAGES,
    LanguageIdentifier,
    LanguageInfo,
    language_name,
)

__all__ = ["LanguageIdentifier", "LanguageInfo", "SUPPORTED_LANGUAGES", "language_name"]
