"""
Download every object under a remote prefix into a local directory.
"""

from dirtransfer.commands.base import DirectoryCommand
from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.config import TransferConfig
from dirtransfer.core.exceptions import ValidationError
from dirtransfer.listing.remote import EnumerationResult, RemoteEnumerator
from dirtransfer.monitoring.logging import TransferLogger
from dirtransfer.monitoring.prometheus import PrometheusMetrics
from dirtransfer.paths import (
    effective_prefix_length,
    key_to_local_path,
    prepare_local_directory,
    relative_key,
)
from dirtransfer.progress import ProgressAggregator
from dirtransfer.stores.base import ObjectStore
from dirtransfer.types import (
    DirectoryTransferRequest,
    ItemTransferResult,
    TransferDirection,
    TransferItem,
)


class DownloadDirectoryCommand(DirectoryCommand):
    """
    Downloads a remote "directory", one file per object.

    Example:
        >>> request = DirectoryTransferRequest(
        ...     bucket="reports", prefix="2024/", local_directory="/data/reports",
        ...     download_files_concurrently=True,
        ... )
        >>> result = await DownloadDirectoryCommand(store, request).run()
        >>> result.status
        <TransferStatus.SUCCEEDED: 'succeeded'>
    """

    direction = TransferDirection.DOWNLOAD

    def __init__(
        self,
        store: ObjectStore,
        request: DirectoryTransferRequest,
        config: TransferConfig | None = None,
        metrics: PrometheusMetrics | None = None,
        transfer_log: TransferLogger | None = None,
    ):
        super().__init__(store, config, metrics, transfer_log)
        self.request = request
        self.listing: EnumerationResult | None = None
        self.prefix_length = 0

    def validate_request(self) -> None:
        """
        Raises:
            ValidationError: If bucket, prefix or local directory is missing
        """
        if not self.request.bucket or not self.request.bucket.strip():
            msg = "A bucket name is required"
            raise ValidationError(msg, field="bucket")
        if self.request.prefix is None:
            msg = "A prefix is required (use an empty string for the whole bucket)"
            raise ValidationError(msg, field="prefix")
        if not self.request.local_directory or not str(self.request.local_directory).strip():
            msg = "A local directory is required"
            raise ValidationError(msg, field="local_directory")

    async def execute(
        self, cancel_token: CancellationToken | None = None
    ) -> list[ItemTransferResult]:
        self.validate_request()
        prepare_local_directory(self.request.local_directory)

        enumerator = RemoteEnumerator(self.store, self.request)
        executor = self._make_executor(self.request.download_files_concurrently)

        self.log.transfer_started(
            self.transfer_id,
            self.direction,
            self.request.bucket,
            enumerator.prefix,
            str(self.request.local_directory),
        )

        async def list_items() -> list[TransferItem]:
            self.listing = await enumerator.enumerate(cancel_token)
            self.prefix_length = effective_prefix_length(
                self.listing.prefix, self.request.disable_slash_correction
            )
            self.aggregator = ProgressAggregator(
                total_items=self.listing.total_items,
                total_bytes=self.listing.total_bytes,
                serial=executor.serial,
                callback=self.request.progress_callback,
            )
            self.log.listing_completed(
                self.listing.total_items, self.listing.total_bytes, self.listing.used_legacy_listing
            )
            return self.listing.items

        return await executor.execute(list_items, self._download_item, cancel_token)

    async def _download_item(
        self, item: TransferItem, cancel_token: CancellationToken
    ) -> ItemTransferResult:
        current_file = relative_key(item.key, self.prefix_length)

        async def transfer() -> ItemTransferResult:
            # Keys are remote data, each mapping is checked inside its own unit
            destination = key_to_local_path(
                item.key, self.prefix_length, self.request.local_directory
            )
            size = await self.store.download_object(
                self.request.bucket,
                item.key,
                destination,
                cancel_token,
                self._progress_reporter(current_file),
            )
            return ItemTransferResult(
                key=item.key,
                source=f"s3://{self.request.bucket}/{item.key}",
                destination=str(destination),
                size=size,
            )

        return await self._run_item(item.key, item.size, transfer)
