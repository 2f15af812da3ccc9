# docsense/ocr/capability.py
# ============================================================
# Primary → Fallback Provider Chain
# ============================================================
# One page, at most two provider calls:
#
#   primary.extract()  ── ok ──────────────────► (text, PRIMARY)
#        │ ProviderError
#        ▼
#   fallback.extract() ── ok ──────────────────► (text, FALLBACK)
#        │ ProviderError
#        ▼
#   ProviderFallbackExhausted(primary_error, fallback_error)
#
# No caching and no retries inside a provider.
# ============================================================

from typing import Optional

from config.settings import settings as default_settings
from docsense.errors import ProviderError, ProviderFallbackExhausted
from docsense.models import ExtractedText, ProviderRole
from docsense.ocr.providers import OCRCapability, ProviderConfig, create_provider
from docsense.utils.logger import get_logger

logger = get_logger(__name__)


class OCRFallbackChain:
    """
    Runs the primary provider and, only if it fails, the fallback.

    Example:
        >>> chain = OCRFallbackChain(primary, fallback)
        >>> extracted, role = await chain.extract(png_bytes, "image/png")
    """

    def __init__(self, primary: OCRCapability, fallback: OCRCapability):
        self.primary = primary
        self.fallback = fallback

    @classmethod
    def from_settings(cls, settings=None) -> "OCRFallbackChain":
        """Build the chain named in settings with an injected ProviderConfig."""
        settings = settings or default_settings
        config = ProviderConfig.from_settings(settings)
        chain = cls(
            primary=create_provider(settings.ocr_primary_provider, config),
            fallback=create_provider(settings.ocr_fallback_provider, config),
        )
        logger.info(
            f"OCR chain — primary: [bold]{chain.primary.name}[/bold], "
            f"fallback: [bold]{chain.fallback.name}[/bold]"
        )
        return chain

    async def extract(
        self,
        image_bytes: bytes,
        mime_type: str,
        page_index: Optional[int] = None,
    ) -> tuple[ExtractedText, ProviderRole]:
        """
        Extract text from one image through the chain.

        Returns:
            The extracted text and which role produced it.

        Raises:
            ProviderFallbackExhausted: If both providers failed.
        """
        label = f"page {page_index + 1}" if page_index is not None else "image"

        try:
            return await self.primary.extract(image_bytes, mime_type), ProviderRole.PRIMARY
        except ProviderError as primary_error:
            logger.warning(f"Primary OCR failed for {label}, trying fallback: {primary_error}")

            try:
                extracted = await self.fallback.extract(image_bytes, mime_type)
            except ProviderError as fallback_error:
                logger.error(f"Fallback OCR failed for {label}: {fallback_error}")
                raise ProviderFallbackExhausted(primary_error, fallback_error, page_index) from fallback_error

        logger.info(f"{label.capitalize()} extracted by fallback [bold]{self.fallback.name}[/bold]")
        return extracted, ProviderRole.FALLBACK

    async def aclose(self) -> None:
        await self.primary.aclose()
        await self.fallback.aclose()
