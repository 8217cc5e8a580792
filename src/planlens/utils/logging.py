"""Structured logging setup for PlanLens."""

import logging
import os
import sys
from typing import Optional, Union

LOG_LEVEL_ENV_VAR = "PLANLENS_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    """Resolve a level from the argument, then PLANLENS_LOG_LEVEL, then WARNING."""
    if level is None:
        level = os.getenv(LOG_LEVEL_ENV_VAR, "WARNING")
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).strip().upper())
    return resolved if isinstance(resolved, int) else logging.WARNING


def setup_logging(level: Optional[Union[int, str]] = None, format_string: Optional[str] = None) -> logging.Logger:
    """
    Set up logging for the ``planlens`` logger hierarchy.

    Only the package logger is configured so that embedding applications
    keep control of the root logger. Calling this twice replaces the
    handler instead of stacking a second one.

    Args:
        level: Logging level name or number (default: PLANLENS_LOG_LEVEL or WARNING)
        format_string: Custom format string (optional)

    Returns:
        Configured package logger
    """
    logger = logging.getLogger("planlens")
    logger.setLevel(_resolve_level(level))

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(format_string or DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance for a specific module."""
    return logging.getLogger(f"planlens.{name}")
