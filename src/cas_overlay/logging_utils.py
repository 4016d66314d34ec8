"""Logging helpers for CAS Overlay."""

from __future__ import annotations

import logging
import os

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "cas_overlay"
LEVEL_ENV = "CAS_OVERLAY_LOG_LEVEL"


def setup_logging(
    level: str | int | None = None,
    console: Console | None = None,
) -> logging.Logger:
    """Configure the cas_overlay logger to write through rich.

    Args:
        level: Logging level (name or constant). Falls back to the
            CAS_OVERLAY_LOG_LEVEL environment variable, then WARNING.
        console: Console the handler writes to (stderr by default)

    Returns:
        The configured package logger
    """
    if level is None:
        level = os.environ.get(LEVEL_ENV, logging.WARNING)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))

    logger = logging.getLogger(LOGGER_NAME)
    _reset_handlers(logger)
    logger.setLevel(_resolve_level(level))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def _resolve_level(level: str | int) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.WARNING)
    return int(level)


def _reset_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
