"""
Upload the files of a local directory under a remote key prefix.
"""

from pathlib import Path

from dirtransfer.commands.base import DirectoryCommand
from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.config import TransferConfig
from dirtransfer.core.exceptions import ValidationError
from dirtransfer.listing.local import LocalEnumerationResult, LocalEnumerator
from dirtransfer.monitoring.logging import TransferLogger
from dirtransfer.monitoring.prometheus import PrometheusMetrics
from dirtransfer.paths import local_path_to_key, normalize_key_prefix
from dirtransfer.progress import ProgressAggregator
from dirtransfer.stores.base import ObjectStore
from dirtransfer.types import (
    ItemTransferResult,
    TransferDirection,
    TransferItem,
    UploadDirectoryRequest,
)


class UploadDirectoryCommand(DirectoryCommand):
    """Uploads matching local files, one object per file."""

    direction = TransferDirection.UPLOAD

    def __init__(
        self,
        store: ObjectStore,
        request: UploadDirectoryRequest,
        config: TransferConfig | None = None,
        metrics: PrometheusMetrics | None = None,
        transfer_log: TransferLogger | None = None,
    ):
        super().__init__(store, config, metrics, transfer_log)
        self.request = request
        self.key_prefix = normalize_key_prefix(request.key_prefix)
        self.listing: LocalEnumerationResult | None = None

    def validate_request(self) -> None:
        if not self.request.bucket or not self.request.bucket.strip():
            msg = "A bucket name is required"
            raise ValidationError(msg, field="bucket")
        if not self.request.local_directory or not str(self.request.local_directory).strip():
            msg = "A local directory is required"
            raise ValidationError(msg, field="local_directory")

    async def execute(
        self, cancel_token: CancellationToken | None = None
    ) -> list[ItemTransferResult]:
        self.validate_request()

        enumerator = LocalEnumerator(
            self.request.local_directory,
            search_pattern=self.request.search_pattern,
            recursive=self.request.recursive,
        )
        executor = self._make_executor(self.request.upload_files_concurrently)

        self.log.transfer_started(
            self.transfer_id,
            self.direction,
            self.request.bucket,
            self.key_prefix,
            str(self.request.local_directory),
        )

        async def list_items() -> list[TransferItem]:
            self.listing = enumerator.enumerate()
            self.aggregator = ProgressAggregator(
                total_items=self.listing.total_items,
                total_bytes=self.listing.total_bytes,
                serial=executor.serial,
                callback=self.request.progress_callback,
            )
            self.log.listing_completed(
                self.listing.total_items, self.listing.total_bytes, legacy=False
            )
            return self.listing.items

        return await executor.execute(list_items, self._upload_item, cancel_token)

    async def _upload_item(
        self, item: TransferItem, cancel_token: CancellationToken
    ) -> ItemTransferResult:
        source = Path(self.request.local_directory) / item.key

        async def transfer() -> ItemTransferResult:
            key = local_path_to_key(source, self.request.local_directory, self.key_prefix)
            size = await self.store.upload_object(
                self.request.bucket,
                key,
                source,
                cancel_token,
                self._progress_reporter(item.key),
            )
            return ItemTransferResult(
                key=key,
                source=str(source),
                destination=f"s3://{self.request.bucket}/{key}",
                size=size,
            )

        return await self._run_item(item.key, item.size, transfer)
