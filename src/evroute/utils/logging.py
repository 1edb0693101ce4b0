"""Logging setup for the ``evroute`` logger hierarchy.

Modules log through ``logging.getLogger(__name__)``; applications call
:func:`setup_logging` once to decide where the records go.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

FORMATS = {
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s",
    "simple": "%(levelname)s - %(message)s",
    "minimal": "%(message)s",
}


def setup_logging(
    level: str | int = "INFO",
    log_format: str = "simple",
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Attach console (and optionally file) handlers to the ``evroute`` logger.

    Calling it again replaces the handlers from the previous call.
    """
    if log_format not in FORMATS:
        raise ValueError(f"unknown log format {log_format!r}, expected one of {sorted(FORMATS)}")
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    logger = logging.getLogger("evroute")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(FORMATS[log_format])
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file is not None:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
