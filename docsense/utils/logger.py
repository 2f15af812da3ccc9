# docsense/utils/logger.py
# ============================================================
# Logging Setup
# ============================================================
# Module loggers write through one shared Rich console on stderr,
# so CLI output on stdout (summary table, extracted text) stays
# clean when it is piped.
#
# Usage:
#   from docsense.utils.logger import get_logger
#   logger = get_logger(__name__)
#   logger.info("Dispatching [bold]3[/bold] pages")
# ============================================================

import logging

from rich.console import Console
from rich.logging import RichHandler

from config.settings import settings

_console = Console(stderr=True)


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger for ``name`` with a Rich handler attached.

    Messages may use Rich markup. The level comes from
    ``settings.log_level``.

    Example:
        >>> logger = get_logger("docsense.ocr.capability")
        >>> logger.warning("Primary OCR failed for page 2, trying fallback")
        [10:30:45] WARNING  docsense.ocr.capability — Primary OCR failed for page 2, ...
    """
    logger = logging.getLogger(name)
    if logger.handlers:
        return logger

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logger.setLevel(level)

    handler = RichHandler(
        console=_console,
        level=level,
        markup=True,
        rich_tracebacks=True,
        show_path=False,
        # pages finish out of order; keep every timestamp
        omit_repeated_times=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s — %(message)s"))

    logger.addHandler(handler)
    logger.propagate = False
    return logger
