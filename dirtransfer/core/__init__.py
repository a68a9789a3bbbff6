"""
Core module for dirtransfer - errors, cancellation, configuration and logging.
"""

from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.config import TransferConfig, configure, get_config
from dirtransfer.core.exceptions import (
    DirTransferError,
    ItemTransferError,
    ListingError,
    ListingNotSupportedError,
    MissingDependencyError,
    TransferCancelledError,
    ValidationError,
)
from dirtransfer.core.logger import get_logger, set_logger

__all__ = [
    "CancellationToken",
    "DirTransferError",
    "ItemTransferError",
    "ListingError",
    "ListingNotSupportedError",
    "MissingDependencyError",
    "TransferCancelledError",
    "TransferConfig",
    "ValidationError",
    "configure",
    "get_config",
    "get_logger",
    "set_logger",
]
