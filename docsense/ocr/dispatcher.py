# docsense/ocr/dispatcher.py
# ============================================================
# OCR Dispatcher — Concurrent Per-Page Fan-out
# ============================================================
# Sends every page through the provider chain concurrently and
# waits for all of them to settle. Any exception on one page,
# provider failure or not, is recorded in that page's outcome;
# the other pages carry on and no task outlives the call.
#
# Results land in a list pre-sized to the page count. Each task
# writes only its own slot, so no lock is needed and the output
# order is page order regardless of completion order.
# ============================================================

import asyncio
import time
from typing import Optional, Sequence

from config.settings import settings
from docsense.errors import PageOCRError
from docsense.models import PageImage, PageOCROutcome
from docsense.ocr.capability import OCRFallbackChain
from docsense.utils.logger import get_logger

logger = get_logger(__name__)


class OCRDispatcher:
    """
    Runs the OCR chain over many pages at once.

    Example:
        >>> dispatcher = OCRDispatcher(chain)
        >>> outcomes = await dispatcher.dispatch_all(pages)
        >>> [o.page_index for o in outcomes]
        [0, 1, 2]
    """

    def __init__(self, chain: OCRFallbackChain, max_concurrency: Optional[int] = None):
        """
        Args:
            chain: Primary/fallback chain used for every page.
            max_concurrency: Upper bound on in-flight pages. Default: from settings.
        """
        self.chain = chain
        self.max_concurrency = max_concurrency or settings.max_batch_size

    async def dispatch_all(self, pages: Sequence[PageImage]) -> list[PageOCROutcome]:
        """
        OCR every page and return one outcome per page, in page order.

        Args:
            pages: Page images; indices need not be contiguous.

        Returns:
            Outcomes sorted by page index.
        """
        if not pages:
            return []

        start = time.perf_counter()
        ordered = sorted(pages, key=lambda p: p.index)
        results: list[Optional[PageOCROutcome]] = [None] * len(ordered)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _process_page(slot: int, page: PageImage) -> None:
            async with semaphore:
                try:
                    extracted, role = await self.chain.extract(page.content, page.mime_type, page.index)
                except PageOCRError as e:
                    logger.warning(f"Page {page.index + 1} failed OCR: {e}")
                    results[slot] = PageOCROutcome.from_error(page.index, e)
                    return
                except Exception as e:
                    logger.error(
                        f"Page {page.index + 1} failed OCR with an unexpected "
                        f"{e.__class__.__name__}: {e}"
                    )
                    error = PageOCRError(page.index, f"{e.__class__.__name__}: {e}")
                    error.__cause__ = e
                    results[slot] = PageOCROutcome.from_error(page.index, error)
                    return
            results[slot] = PageOCROutcome.from_extraction(page.index, extracted, role)

        await asyncio.gather(*[_process_page(slot, page) for slot, page in enumerate(ordered)])

        outcomes = [outcome for outcome in results if outcome is not None]
        succeeded = sum(1 for o in outcomes if o.success)
        duration = (time.perf_counter() - start) * 1000
        logger.info(
            f"Dispatch complete — {succeeded}/{len(outcomes)} pages extracted in {duration:.0f}ms"
        )
        return outcomes
