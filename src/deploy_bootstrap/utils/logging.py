"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Optional

_LOGGING_CONFIGURED = False

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"


def configure_logging(verbose: bool = False) -> None:
    """Set the root level once; later calls only adjust the level."""
    global _LOGGING_CONFIGURED
    level = logging.DEBUG if verbose else logging.INFO
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(level=level, format=LOG_FORMAT)
        # paramiko logs every transport negotiation step at INFO
        logging.getLogger("paramiko").setLevel(logging.WARNING)
        _LOGGING_CONFIGURED = True
    else:
        logging.getLogger().setLevel(level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    if not _LOGGING_CONFIGURED:
        configure_logging()
    return logging.getLogger(name)
