# ============================================
# FILE: dirtransfer/__init__.py
# ============================================

"""
dirtransfer - Async directory transfers for S3-compatible object stores

Moves a whole logical "directory" (every object under a key prefix) between
an object store and the local file system:
- Paginated enumeration with a one-time fallback to legacy listing
- Modification-time window filters and encryption instruction file skipping
- Safe key to path mapping that never writes outside the target directory
- Bounded concurrency with fail-fast semantics
- Aggregated progress reporting and cooperative cancellation
- Structured logging and optional Prometheus metrics

Usage:
    >>> from dirtransfer import TransferUtility, CancellationToken
    >>> from dirtransfer.stores import S3ObjectStore
    >>>
    >>> token = CancellationToken()
    >>> async with S3ObjectStore(region_name="us-east-1") as store:
    ...     result = await TransferUtility(store).download_directory(
    ...         "my-bucket", "docs/", "/data/docs",
    ...         concurrent=True,
    ...         progress_callback=print,
    ...         cancel_token=token,
    ...     )
    >>> result.status
    <TransferStatus.SUCCEEDED: 'succeeded'>
"""

from dirtransfer.commands import (
    DirectoryCommand,
    DownloadDirectoryCommand,
    UploadDirectoryCommand,
)
from dirtransfer.core import (
    CancellationToken,
    DirTransferError,
    ItemTransferError,
    ListingError,
    ListingNotSupportedError,
    MissingDependencyError,
    TransferCancelledError,
    TransferConfig,
    ValidationError,
    configure,
    get_config,
    get_logger,
    set_logger,
)
from dirtransfer.execution import ThrottledFailFastExecutor
from dirtransfer.stores import InMemoryObjectStore, ObjectStore, S3ObjectStore
from dirtransfer.types import (
    DirectoryProgress,
    DirectoryTransferRequest,
    DirectoryTransferResult,
    ItemProgress,
    ItemTransferResult,
    ListPage,
    TransferDirection,
    TransferItem,
    TransferStatus,
    UploadDirectoryRequest,
)
from dirtransfer.utility import TransferUtility

__version__ = "0.1.0"

__all__ = [
    "CancellationToken",
    "DirTransferError",
    "DirectoryCommand",
    "DirectoryProgress",
    "DirectoryTransferRequest",
    "DirectoryTransferResult",
    "DownloadDirectoryCommand",
    "InMemoryObjectStore",
    "ItemProgress",
    "ItemTransferError",
    "ItemTransferResult",
    "ListPage",
    "ListingError",
    "ListingNotSupportedError",
    "MissingDependencyError",
    "ObjectStore",
    "S3ObjectStore",
    "ThrottledFailFastExecutor",
    "TransferCancelledError",
    "TransferConfig",
    "TransferDirection",
    "TransferItem",
    "TransferStatus",
    "TransferUtility",
    "UploadDirectoryCommand",
    "UploadDirectoryRequest",
    "ValidationError",
    "__version__",
    "configure",
    "get_config",
    "get_logger",
    "set_logger",
]
