"""Loguru setup for the participant homes CLI and service."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

_LEVELS = {-1: "WARNING", 0: "INFO", 1: "DEBUG"}


def configure_logging(verbosity: int = 0, log_file: str | Path | None = None) -> None:
    """Route loguru output to stderr (and optionally a file).

    Args:
        verbosity: -1 = WARNING (quiet), 0 = INFO (default), 1 = DEBUG.
            Debug output includes the query variant and timing of each
            marker query.
        log_file: Extra sink that always records DEBUG, for query audits.
    """
    logger.remove()

    level = _LEVELS[max(-1, min(1, verbosity))]
    if level == "DEBUG":
        fmt = "{time:HH:mm:ss} | {level:<7} | {name}:{function} | {message}"
    else:
        fmt = "{message}"
    logger.add(sys.stderr, level=level, format=fmt)

    if log_file is not None:
        logger.add(
            str(log_file),
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level:<7} | {message}",
        )
