"""Logging configuration for the eyeballs command line tool."""

import logging
import os
import sys

LOG_LEVEL_ENV = "EYEBALLS_LOG_LEVEL"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def resolve_log_level(name: str | None) -> int:
    """Map a level name to a logging constant, falling back to INFO."""
    if not name:
        return logging.INFO
    return _LEVELS.get(name.strip().upper(), logging.INFO)


def configure_logging(level: str | None = None, stream=None) -> int:
    """Configure process-wide logging for a measurement run.

    The level comes from ``level`` when given, else from the
    EYEBALLS_LOG_LEVEL environment variable, else INFO. Unknown names
    fall back to INFO. Records go to stderr unless another stream is given.

    Examples:
        $ python -m eyeballs 1 10
        $ EYEBALLS_LOG_LEVEL=DEBUG python -m eyeballs 3 100

    Returns:
        The effective logging level
    """
    log_level = resolve_log_level(level if level is not None else os.environ.get(LOG_LEVEL_ENV))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=stream if stream is not None else sys.stderr,
        force=True,
    )

    logging.getLogger(__name__).debug("Logging configured: level=%s", logging.getLevelName(log_level))
    return log_level
