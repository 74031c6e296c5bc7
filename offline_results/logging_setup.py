"""Loguru sink configuration for the command line."""

from __future__ import annotations

import sys

from loguru import logger

from .config import Settings


def configure_logging(settings: Settings) -> None:
    """Replace the default loguru sink with the configured ones."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=settings.log_level,
        format="<dim>{time:HH:mm:ss}</dim> | <level>{level: <8}</level> | {message}",
    )
    if settings.log_file:
        logger.add(
            settings.log_file,
            level=settings.log_level,
            rotation="10 MB",
            retention=5,
        )
