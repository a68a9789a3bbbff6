"""
Pluggable logger lookup for dirtransfer modules.

Library code logs through ``get_logger`` so an application can route every
dirtransfer record to its own logger (structlog, loguru, ...) with a single
``set_logger`` call. Without one, records go to the standard ``dirtransfer.*``
loggers, which stay silent until the application configures a handler.

Usage:
    from dirtransfer.core.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Listing s3://bucket/prefix")
"""

import logging
from typing import Any

_custom_logger: Any = None


def set_logger(logger: Any) -> None:
    """
    Route all dirtransfer logging to ``logger``.

    Args:
        logger: Any object with debug/info/warning/error/exception methods.
                Pass None to go back to standard logging.
    """
    global _custom_logger
    _custom_logger = logger


def get_logger(name: str = "dirtransfer") -> Any:
    """Return the custom logger if one is set, else ``logging.getLogger(name)``."""
    if _custom_logger is not None:
        return _custom_logger

    logger = logging.getLogger(name)

    # Library loggers never emit "No handler found" warnings
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger
