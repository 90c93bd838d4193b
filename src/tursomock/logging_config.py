"""Loguru logging configuration for the mock server.

``setup_logging()`` installs one stderr sink (coloured text or serialized
JSON), an optional rotating file sink, and routes stdlib ``logging``
records from uvicorn and fastapi through loguru. Records emitted while a
pipeline runs carry the target database in ``extra["db"]``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from loguru import logger

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<magenta>{extra[db]}</magenta> | "
    "<cyan>{name}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

_INTERCEPTED_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error", "fastapi")


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Walk out of the logging module so loguru reports the real caller
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(*, level: str = "INFO", json: bool = False, log_file: Path | None = None) -> None:
    """Make loguru the single logging backend.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ...).
        json: Emit one serialized JSON object per record instead of text.
        log_file: Also write to this file, rotated at 10 MB.
    """
    logger.remove()
    logger.configure(extra={"db": "-"})

    if json:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=_TEXT_FORMAT, colorize=True)

    if log_file is not None:
        logger.add(
            log_file,
            level=level,
            format=_TEXT_FORMAT,
            rotation="10 MB",
            retention=3,
            serialize=json,
        )

    handler = InterceptHandler()
    for name in _INTERCEPTED_LOGGERS:
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [handler]
        stdlib_logger.propagate = False

    logging.root.handlers = [handler]
    logging.root.setLevel(level)
