"""Logging setup for the converge CLI and its pipeline threads."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

_LOGGER_NAME = "converge"

# stderr stays terse; stdout may carry the merged source.
STREAM_FORMAT = "[converge] %(levelname)s %(message)s"
# Records come from the scanner and worker threads, so the file names them.
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s]: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``converge`` or one of its children, e.g. ``converge.scanner``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(
    *, verbose: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Attach fresh handlers to the ``converge`` logger and return it.

    stderr shows warnings and errors, or everything with ``verbose``. A log
    file additionally keeps the INFO run summary even without ``verbose``.
    Calling this again replaces the previous handlers.
    """
    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False
    _drop_handlers(logger)

    handlers: List[logging.Handler] = [
        _handler(logging.StreamHandler(), logging.DEBUG if verbose else logging.WARNING, STREAM_FORMAT)
    ]
    if log_file is not None:
        handlers.append(
            _handler(
                logging.FileHandler(log_file, encoding="utf-8"),
                logging.DEBUG if verbose else logging.INFO,
                FILE_FORMAT,
            )
        )

    for handler in handlers:
        logger.addHandler(handler)
    logger.setLevel(min(handler.level for handler in handlers))
    return logger


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _drop_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


__all__ = ["FILE_FORMAT", "STREAM_FORMAT", "configure_logging", "get_logger"]
