# docsense/errors.py
# ============================================================
# Pipeline Error Taxonomy
# ============================================================
# Fatal errors (classification, rasterization) abort a submission.
# Per-page OCR errors are recorded by the dispatcher and blanked
# during aggregation. Language identification errors never leave
# the identifier.
#
#   DocsenseError
#   ├── ClassificationError          fatal
#   ├── RasterizationError           fatal, temp storage released
#   ├── ProviderError                one provider call failed
#   ├── PageOCRError                 per page, non-fatal
#   │   └── ProviderFallbackExhausted  primary + fallback both failed
#   └── LanguageIdentificationError  recovered locally
# ============================================================

from typing import Optional


class DocsenseError(Exception):
    """Base class for every error raised by the pipeline."""


class ClassificationError(DocsenseError):
    """The submission could not be classified (empty or unsupported input)."""


class RasterizationError(DocsenseError):
    """A scanned PDF could not be converted into at least one page image."""


class ProviderError(DocsenseError):
    """
    A single OCR provider call failed.

    Covers network errors, timeouts, non-2xx responses, missing
    credentials and responses that are empty or not in the expected
    shape.

    Attributes:
        provider: Name of the provider that failed.
    """

    def __init__(self, provider: str, message: str):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class PageOCRError(DocsenseError):
    """OCR failed for one page."""

    def __init__(self, page_index: Optional[int], message: str):
        super().__init__(message)
        self.page_index = page_index


class ProviderFallbackExhausted(PageOCRError):
    """
    Both the primary and the fallback provider failed for one page.

    The two underlying failures are kept separately so callers can tell
    "both providers down" from a single provider error.
    """

    def __init__(
        self,
        primary_error: ProviderError,
        fallback_error: ProviderError,
        page_index: Optional[int] = None,
    ):
        super().__init__(
            page_index,
            f"OCR failed. Primary error: {primary_error}. Fallback error: {fallback_error}",
        )
        self.primary_error = primary_error
        self.fallback_error = fallback_error

    def for_page(self, page_index: int) -> "ProviderFallbackExhausted":
        """Return a copy bound to ``page_index``."""
        return ProviderFallbackExhausted(self.primary_error, self.fallback_error, page_index)


class LanguageIdentificationError(DocsenseError):
    """The language detector raised while analysing text."""
