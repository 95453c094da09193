"""Logging setup for the extenscan CLI."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "extenscan"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_handler: logging.Handler | None = None


def level_for(verbosity: int) -> int:
    """Map a ``-v`` count to a logging level."""
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(verbosity: int = 0) -> None:
    """Send ``extenscan.*`` log records to stderr at the level for *verbosity*.

    Safe to call more than once; the handler is rebuilt so that it always
    writes to the current ``sys.stderr``.
    """
    global _handler
    logger = logging.getLogger(LOGGER_NAME)
    if _handler is not None:
        logger.removeHandler(_handler)

    _handler = logging.StreamHandler(sys.stderr)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(_handler)
    logger.setLevel(level_for(verbosity))
    logger.propagate = False
    logger.debug("Logging configured at level %s", logging.getLevelName(logger.level))
