# docsense/document/rasterizer.py
# ============================================================
# Page Rasterizer — Scanned PDF → Page Images
# ============================================================
# Renders every page of a scanned PDF to PNG via pdf2image
# (poppler backend) so the OCR providers can read it.
#
# Each call owns a private temporary directory for poppler's
# output. `rasterize()` is an async context manager: the directory
# is removed when the `async with` block exits, whether the run
# succeeded, some pages failed, a fatal error was raised, or the
# caller's timeout cancelled the task.
#
# Usage:
#   rasterizer = PageRasterizer()
#   async with rasterizer.rasterize(pdf_bytes) as pages:
#       outcomes = await dispatcher.dispatch_all(pages)
# ============================================================

import asyncio
import shutil
import tempfile
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from PIL import Image
from pdf2image import convert_from_bytes
from pdf2image.exceptions import (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
)

from config.settings import settings
from docsense.errors import RasterizationError
from docsense.models import PageImage
from docsense.utils.image import encode_png, fit_within, page_dimensions
from docsense.utils.logger import get_logger

logger = get_logger(__name__)

_CONVERTER_ERRORS = (
    PDFInfoNotInstalledError,
    PDFPageCountError,
    PDFPopplerTimeoutError,
    PDFSyntaxError,
    OSError,
)


class PageRasterizer:
    """
    Converts scanned PDFs into ordered PNG page images.

    Example:
        >>> rasterizer = PageRasterizer(dpi=200)
        >>> async with rasterizer.rasterize(pdf_bytes) as pages:
        ...     print([p.index for p in pages])
        [0, 1, 2]
    """

    def __init__(
        self,
        dpi: Optional[int] = None,
        max_dim: Optional[int] = None,
    ):
        """
        Args:
            dpi: Render resolution. Default: from settings.
            max_dim: Pages whose largest side exceeds this are downscaled.
                     Default: from settings.
        """
        self.dpi = dpi or settings.pdf_render_dpi
        self.max_dim = max_dim or settings.max_image_dim

        logger.debug(f"PageRasterizer initialized — DPI: {self.dpi}, max dimension: {self.max_dim}px")

    @asynccontextmanager
    async def rasterize(self, pdf_bytes: bytes) -> AsyncIterator[list[PageImage]]:
        """
        Render a PDF and yield its pages, releasing temp storage on exit.

        Args:
            pdf_bytes: Raw PDF content.

        Yields:
            PageImage objects in page order, indexed from 0.

        Raises:
            RasterizationError: If the converter fails or yields no pages.
        """
        workdir = Path(tempfile.mkdtemp(prefix="docsense-pages-"))
        try:
            pages = await asyncio.to_thread(self._render, pdf_bytes, workdir)
            yield pages
        finally:
            shutil.rmtree(workdir, ignore_errors=True)
            logger.debug(f"Released page storage {workdir}")

    def _render(self, pdf_bytes: bytes, workdir: Path) -> list[PageImage]:
        """Run poppler into ``workdir`` and load the pages it produced."""
        start = time.perf_counter()

        try:
            paths = convert_from_bytes(
                pdf_bytes,
                dpi=self.dpi,
                fmt="png",
                output_folder=str(workdir),
                paths_only=True,
            )
        except _CONVERTER_ERRORS as e:
            raise RasterizationError(f"Failed to convert PDF to images: {e}") from e

        if not paths:
            raise RasterizationError("Failed to convert PDF to images: no pages produced")

        pages = [self._load_page(index, Path(path)) for index, path in enumerate(paths)]

        duration = (time.perf_counter() - start) * 1000
        logger.info(f"Rasterized [green]{len(pages)}[/green] pages at {self.dpi} DPI in {duration:.0f}ms")
        return pages

    def _load_page(self, index: int, path: Path) -> PageImage:
        """Read one rendered page, downscaling it if it is too large."""
        try:
            with Image.open(path) as img:
                img.load()
                processed = fit_within(img, self.max_dim)
                info = page_dimensions(processed)
                content = path.read_bytes() if processed is img else encode_png(processed)
        except OSError as e:
            raise RasterizationError(f"Rendered page {index + 1} is unreadable: {e}") from e

        logger.debug(
            f"  PDF page {index + 1}: {info['width']}x{info['height']} "
            f"({info['megapixels']} MP)"
        )
        return PageImage(
            index=index,
            content=content,
            mime_type="image/png",
            width=info["width"],
            height=info["height"],
        )
