"""Debug log setup. The terminal belongs to Textual, so logs go to a file."""

from __future__ import annotations

import logging
from pathlib import Path

from storefront.config import LOG_PATH

_HANDLER_NAME = "storefront-debug-file"


def configure_logging(path: str = LOG_PATH, level: int = logging.INFO) -> logging.Logger:
    """Attach a file handler to the ``storefront`` logger once."""
    logger = logging.getLogger("storefront")
    logger.setLevel(level)
    if any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        return logger

    try:
        log_file = Path(path)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    except OSError:
        # Logging must never interfere with app flow.
        handler = logging.NullHandler()

    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
