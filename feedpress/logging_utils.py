"""Logging setup for the feedpress logger tree."""

import logging

from rich.logging import RichHandler

LOGGER_NAME = "feedpress"


def _level_from_string(level: str) -> int:
    return getattr(logging, level.upper(), logging.INFO)


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Route all feedpress loggers through a single rich handler."""
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_level_from_string(level))
    logger.handlers = []
    logger.propagate = False

    handler = RichHandler(rich_tracebacks=True, show_time=False, show_level=True)
    handler.setLevel(_level_from_string(level))
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)

    return logger
