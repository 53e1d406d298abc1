"""Logging setup for Track Import.

All modules log through children of the application logger, e.g.
``get_logger("core.reconciler")`` -> ``Track Import.core.reconciler``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from trackimport.utils.constants import APP_NAME

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logger(
    log_level: str = "INFO",
    log_file: str | None = None,
) -> logging.Logger:
    """Configure and return the application logger.

    Calling it again replaces the handlers installed by a previous call, so
    one process can run several imports with different settings.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path to a log file. If None, logs only to stderr.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(APP_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    level = getattr(logging, log_level.upper(), logging.INFO)
    logger.setLevel(level)
    formatter = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    # stdout carries the imported track list
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


def get_logger(module_name: str | None = None) -> logging.Logger:
    """Get a child logger for a specific module.

    Args:
        module_name: Dotted module name (e.g. 'core.reconciler').
    """
    base = logging.getLogger(APP_NAME)
    return base.getChild(module_name) if module_name else base
