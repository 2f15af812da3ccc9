# docsense/utils/__init__.py
# ============================================================
# Shared Utilities Package
# ============================================================
#   - logger: Rich console logging
#   - image: encoding, downscaling and size probing
# ============================================================

from docsense.utils.logger import get_logger
from docsense.utils.image import (
    encode_image_base64,
    encode_png,
    fit_within,
    page_dimensions,
    probe_size,
    to_data_url,
)

__all__ = [
    "get_logger",
    "encode_image_base64",
    "encode_png",
    "fit_within",
    "page_dimensions",
    "probe_size",
    "to_data_url",
]
