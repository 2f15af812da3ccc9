# config/__init__.py
# ============================================================
# Configuration package for the docsense OCR pipeline.
# Provides centralized, validated settings loaded from .env file.
#
# Usage:
#   from config.settings import settings
#   print(settings.ocr_primary_provider)
# ============================================================

from config.settings import settings

__all__ = ["settings"]
