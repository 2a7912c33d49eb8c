"""Configuracion de logging para glucose_log.

Niveles segun verbosidad:
- 0 (default): WARNING
- 1 (-v):      INFO
- 2+ (-vv):    DEBUG
"""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "glucose_log"


def setup_logging(verbosity: int = 0) -> logging.Logger:
    """Configure the package logger with a stderr handler.

    Args:
        verbosity: Number of -v flags.

    Returns:
        The configured ``glucose_log`` logger.
    """
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    if verbosity >= 2:
        fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    else:
        fmt = "%(levelname)s: %(message)s"
    handler.setFormatter(logging.Formatter(fmt, datefmt="%H:%M:%S"))
    logger.addHandler(handler)
    return logger
