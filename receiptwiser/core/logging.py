"""Logging setup for the ReceiptWiser service.

Usage:
    from receiptwiser.core.logging import get_logger
    logger = get_logger(__name__)

Environment variables:
    RECEIPTWISER_LOG_LEVEL: Overrides ``settings.LOG_LEVEL`` (DEBUG, INFO, WARNING, ERROR).
"""

import logging
import os
import sys

from receiptwiser.core.config import settings

LOGGER_NAMESPACE = "receiptwiser"

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_FORMAT_DEBUG = "%(asctime)s %(levelname)s [%(name)s:%(lineno)d] %(message)s"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
}

_logging_configured = False


def _resolve_level() -> int:
    name = os.environ.get("RECEIPTWISER_LOG_LEVEL") or settings.LOG_LEVEL
    return _LEVELS.get(name.upper(), logging.INFO)


def configure_logging(level: int | None = None) -> None:
    """Attach a single stderr handler to the ``receiptwiser`` logger tree.

    Args:
        level: Log level to use. If None, it comes from RECEIPTWISER_LOG_LEVEL
               or the LOG_LEVEL setting.
    """
    global _logging_configured

    if _logging_configured:
        return

    if level is None:
        level = _resolve_level()

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT_DEBUG if level == logging.DEBUG else LOG_FORMAT))

    root_logger = logging.getLogger(LOGGER_NAMESPACE)
    root_logger.setLevel(level)
    root_logger.addHandler(handler)
    root_logger.propagate = False

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``receiptwiser`` namespace.

    Module names that already start with the package name are used as-is.
    """
    configure_logging()

    if name == LOGGER_NAMESPACE or name.startswith(f"{LOGGER_NAMESPACE}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
