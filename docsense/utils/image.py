# docsense/utils/image.py
# ============================================================
# Image Utility Functions
# ============================================================
# Byte-level helpers shared by the rasterizer, the OCR providers
# and the orchestrator.
#
# Usage:
#   from docsense.utils.image import fit_within, encode_png
#   page = fit_within(rendered_page, max_dim=4096)
#   payload = to_data_url(encode_png(page), "image/png")
# ============================================================

import base64
import io
import time
from typing import Optional

from PIL import Image, UnidentifiedImageError

from docsense.utils.logger import get_logger

logger = get_logger(__name__)


def encode_image_base64(image_bytes: bytes) -> str:
    """Encode raw image bytes as a base64 string."""
    return base64.b64encode(image_bytes).decode("utf-8")


def to_data_url(image_bytes: bytes, mime_type: str) -> str:
    """Build a ``data:`` URL for OpenAI-style ``image_url`` message parts."""
    return f"data:{mime_type};base64,{encode_image_base64(image_bytes)}"


def fit_within(image: Image.Image, max_dim: int = 4096) -> Image.Image:
    """
    Downscale ``image`` so neither side exceeds ``max_dim``.

    The aspect ratio is kept. An image that already fits is returned
    as the same object, so callers can tell whether anything changed.
    """
    width, height = image.size
    if max(width, height) <= max_dim:
        return image

    start = time.perf_counter()
    scale = max_dim / max(width, height)
    target = (max(1, int(width * scale)), max(1, int(height * scale)))
    resized = image.resize(target, Image.Resampling.LANCZOS)

    duration = (time.perf_counter() - start) * 1000
    logger.debug(f"Downscaled page {width}x{height} -> {target[0]}x{target[1]} in {duration:.1f}ms")
    return resized


def encode_png(image: Image.Image) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


def probe_size(image_bytes: bytes) -> Optional[tuple[int, int]]:
    """
    Return ``(width, height)`` of an encoded image, or None if Pillow
    cannot identify it. Only the header is parsed.
    """
    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            return img.size
    except (UnidentifiedImageError, OSError):
        return None


def page_dimensions(image: Image.Image) -> dict:
    """
    Width, height and megapixels of a page, for logs and page metadata.

    Example:
        >>> page_dimensions(Image.new("RGB", (2000, 1500)))
        {'width': 2000, 'height': 1500, 'megapixels': 3.0}
    """
    width, height = image.size
    return {
        "width": width,
        "height": height,
        "megapixels": round(width * height / 1_000_000, 2),
    }
