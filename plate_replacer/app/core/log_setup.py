"""Loguru sink configuration for the CLI run."""
from __future__ import annotations

import sys

from loguru import logger

from plate_replacer.app.core import SERVICE_NAME

_TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[event]}</cyan> {message} | {extra}"
)


def configure_logging(level: str = "INFO", *, serialize: bool = False) -> None:
    """Replace loguru's default sink with a single stderr sink."""
    logger.remove()
    logger.configure(extra={"service_name": SERVICE_NAME, "event": "-"})
    if serialize:
        logger.add(sys.stderr, level=level.upper(), serialize=True)
    else:
        logger.add(sys.stderr, level=level.upper(), format=_TEXT_FORMAT)
