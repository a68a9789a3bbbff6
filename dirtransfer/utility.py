"""
High-level entry point for directory transfers.

Usage:
    >>> from dirtransfer import TransferUtility
    >>> from dirtransfer.stores import S3ObjectStore
    >>>
    >>> async with S3ObjectStore(region_name="eu-west-1") as store:
    ...     utility = TransferUtility(store)
    ...     result = await utility.download_directory(
    ...         "reports", "2024/", "/data/reports", concurrent=True
    ...     )
    ...     print(result.status, result.progress)
"""

from datetime import datetime

from dirtransfer.commands import DownloadDirectoryCommand, UploadDirectoryCommand
from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.config import TransferConfig, get_config
from dirtransfer.monitoring.prometheus import PrometheusMetrics, get_default_metrics
from dirtransfer.stores.base import ObjectStore
from dirtransfer.types import (
    DirectoryTransferRequest,
    DirectoryTransferResult,
    ProgressCallback,
    UploadDirectoryRequest,
)


class TransferUtility:
    """
    Builds directory requests from keyword arguments and runs them.

    Every call returns a ``DirectoryTransferResult``; use the commands
    directly to get exceptions instead.
    """

    def __init__(
        self,
        store: ObjectStore,
        config: TransferConfig | None = None,
        metrics: PrometheusMetrics | None = None,
    ):
        self.store = store
        self.config = config or get_config()
        if metrics is None and self.config.metrics:
            metrics = get_default_metrics()
        self.metrics = metrics

    async def download_directory(
        self,
        bucket: str,
        prefix: str,
        local_directory: str,
        *,
        concurrent: bool = False,
        modified_since: datetime | None = None,
        unmodified_since: datetime | None = None,
        disable_slash_correction: bool = False,
        progress_callback: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> DirectoryTransferResult:
        request = DirectoryTransferRequest(
            bucket=bucket,
            prefix=prefix,
            local_directory=local_directory,
            download_files_concurrently=concurrent,
            modified_since=modified_since,
            unmodified_since=unmodified_since,
            disable_slash_correction=disable_slash_correction,
            progress_callback=progress_callback,
        )
        return await self.download(request, cancel_token)

    async def download(
        self, request: DirectoryTransferRequest, cancel_token: CancellationToken | None = None
    ) -> DirectoryTransferResult:
        command = DownloadDirectoryCommand(self.store, request, self.config, self.metrics)
        return await command.run(cancel_token)

    async def upload_directory(
        self,
        local_directory: str,
        bucket: str,
        key_prefix: str = "",
        *,
        search_pattern: str = "*",
        recursive: bool = True,
        concurrent: bool = False,
        progress_callback: ProgressCallback | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> DirectoryTransferResult:
        request = UploadDirectoryRequest(
            bucket=bucket,
            local_directory=local_directory,
            key_prefix=key_prefix,
            search_pattern=search_pattern,
            recursive=recursive,
            upload_files_concurrently=concurrent,
            progress_callback=progress_callback,
        )
        return await self.upload(request, cancel_token)

    async def upload(
        self, request: UploadDirectoryRequest, cancel_token: CancellationToken | None = None
    ) -> DirectoryTransferResult:
        command = UploadDirectoryCommand(self.store, request, self.config, self.metrics)
        return await command.run(cancel_token)
