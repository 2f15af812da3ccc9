# tests/helpers.py
# ============================================================
# Shared Test Helpers
# ============================================================
# Builders for small PDFs and PNGs, plus fake OCR providers and a
# fake rasterizer so the pipeline runs without network access or
# poppler.
# ============================================================

import asyncio
import io
from contextlib import asynccontextmanager
from typing import Optional

from PIL import Image

from docsense.models import ExtractedText, PageImage


# ============================================================
# Document builders
# ============================================================

def _escape_pdf_string(text: str) -> str:
    return text.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")


def make_text_pdf(*page_texts: str) -> bytes:
    """Build a minimal PDF with one Helvetica text line per page."""
    page_ids = [4 + 2 * i for i in range(len(page_texts))]
    objects = {
        1: "<< /Type /Catalog /Pages 2 0 R >>",
        2: (
            f"<< /Type /Pages /Kids [{' '.join(f'{pid} 0 R' for pid in page_ids)}] "
            f"/Count {len(page_texts)} >>"
        ),
        3: "<< /Type /Font /Subtype /Type1 /BaseFont /Helvetica >>",
    }
    for pid, text in zip(page_ids, page_texts):
        stream = f"BT /F1 12 Tf 72 720 Td ({_escape_pdf_string(text)}) Tj ET" if text else ""
        objects[pid] = (
            "<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] "
            f"/Resources << /Font << /F1 3 0 R >> >> /Contents {pid + 1} 0 R >>"
        )
        objects[pid + 1] = f"<< /Length {len(stream)} >>\nstream\n{stream}\nendstream"

    out = b"%PDF-1.4\n"
    offsets = {}
    for num in sorted(objects):
        offsets[num] = len(out)
        out += f"{num} 0 obj\n{objects[num]}\nendobj\n".encode("latin-1")

    xref_offset = len(out)
    size = max(objects) + 1
    out += f"xref\n0 {size}\n0000000000 65535 f \n".encode("ascii")
    for num in range(1, size):
        out += f"{offsets[num]:010d} 00000 n \n".encode("ascii")
    out += (
        f"trailer\n<< /Size {size} /Root 1 0 R >>\nstartxref\n{xref_offset}\n%%EOF\n"
    ).encode("ascii")
    return out


def make_image_pdf(pages: int = 1) -> bytes:
    """Build an image-only PDF (no text layer) with Pillow."""
    images = [Image.new("RGB", (200, 100), color="white") for _ in range(pages)]
    buffer = io.BytesIO()
    images[0].save(buffer, format="PDF", save_all=True, append_images=images[1:])
    return buffer.getvalue()


def make_png(width: int = 120, height: int = 80, color: str = "white") -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), color=color).save(buffer, format="PNG")
    return buffer.getvalue()


# ============================================================
# Fakes
# ============================================================

class FakeProvider:
    """
    Stand-in OCR provider keyed on the image bytes it receives.

    ``responses`` maps image bytes to an ExtractedText or an exception to
    raise; ``delays`` maps image bytes to a sleep before answering.
    """

    def __init__(
        self,
        name: str,
        responses: Optional[dict] = None,
        default=None,
        delays: Optional[dict] = None,
    ):
        self.name = name
        self.responses = responses or {}
        self.default = default if default is not None else ExtractedText(text=f"{name} text")
        self.delays = delays or {}
        self.calls: list[bytes] = []
        self.closed = False

    async def extract(self, image_bytes: bytes, mime_type: str) -> ExtractedText:
        self.calls.append(image_bytes)
        delay = self.delays.get(image_bytes)
        if delay:
            await asyncio.sleep(delay)
        outcome = self.responses.get(image_bytes, self.default)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def aclose(self) -> None:
        self.closed = True


class FakeRasterizer:
    """Yields fixed pages and records whether its storage was released."""

    def __init__(self, pages: list[PageImage], error: Optional[Exception] = None):
        self.pages = pages
        self.error = error
        self.calls = 0
        self.released = False

    @asynccontextmanager
    async def rasterize(self, pdf_bytes: bytes):
        self.calls += 1
        try:
            if self.error is not None:
                raise self.error
            yield self.pages
        finally:
            self.released = True


def make_pages(count: int) -> list[PageImage]:
    return [PageImage(index=i, content=f"page-{i}".encode()) for i in range(count)]
