"""
Logging configuration for the command-line surface.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "rvtools_inventory"


def configure_logging(level: str = "INFO", console: Console | None = None) -> logging.Logger:
    """
    Send package log records to a rich handler.

    Only the package logger is configured; the root logger is left alone.
    Calling this again replaces the previously installed handler.

    Args:
        level: Level name such as "DEBUG" or "WARNING"
        console: Console to log to (stderr by default)

    Returns:
        The package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(level.upper())
    logger.propagate = False
    return logger
