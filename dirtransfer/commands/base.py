"""
Base class for directory transfer commands.

A command owns one run: it validates its request, enumerates the work,
hands the items to a ``ThrottledFailFastExecutor`` and turns the outcome into
a ``DirectoryTransferResult``.
"""

import asyncio
import time
import uuid
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime

from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.config import TransferConfig, get_config
from dirtransfer.core.exceptions import (
    DirTransferError,
    ItemTransferError,
    TransferCancelledError,
)
from dirtransfer.execution.throttled import ThrottledFailFastExecutor
from dirtransfer.monitoring.logging import TransferLogger, transfer_logger
from dirtransfer.monitoring.prometheus import PrometheusMetrics
from dirtransfer.progress import ProgressAggregator
from dirtransfer.stores.base import ObjectStore
from dirtransfer.types import (
    DirectoryTransferResult,
    ItemProgress,
    ItemTransferResult,
    TransferDirection,
    TransferStatus,
)


class DirectoryCommand(ABC):
    """
    One directory transfer run.

    Subclasses implement ``execute``, which raises on failure or
    cancellation. ``run`` wraps it and always returns exactly one
    ``DirectoryTransferResult``.
    """

    direction: TransferDirection

    def __init__(
        self,
        store: ObjectStore,
        config: TransferConfig | None = None,
        metrics: PrometheusMetrics | None = None,
        transfer_log: TransferLogger | None = None,
    ):
        self.store = store
        self.config = config or get_config()
        self.metrics = metrics
        self.log = transfer_log or transfer_logger
        self.transfer_id = str(uuid.uuid4())
        self.executor: ThrottledFailFastExecutor | None = None
        self.aggregator: ProgressAggregator | None = None

    @abstractmethod
    async def execute(
        self, cancel_token: CancellationToken | None = None
    ) -> list[ItemTransferResult]:
        """
        Transfer the directory.

        Returns:
            Transferred items in settlement order

        Raises:
            ValidationError: Invalid request, nothing transferred
            ListingError: Enumeration failed, nothing transferred
            TransferCancelledError: The caller cancelled the run
            DirTransferError: The first item failure
        """
        raise NotImplementedError("Subclasses must implement execute")

    async def run(self, cancel_token: CancellationToken | None = None) -> DirectoryTransferResult:
        """Execute and classify the outcome instead of raising."""
        started_at = datetime.now(UTC)
        started = time.monotonic()
        error: BaseException | None = None

        try:
            await self.execute(cancel_token)
            status = TransferStatus.SUCCEEDED
        except TransferCancelledError as e:
            status = TransferStatus.CANCELLED
            error = e
        except Exception as e:
            status = TransferStatus.FAILED
            error = e

        duration = time.monotonic() - started
        result = DirectoryTransferResult(
            status=status,
            direction=self.direction,
            error=error,
            items=list(self.executor.results) if self.executor else [],
            progress=self.aggregator.snapshot() if self.aggregator else None,
            started_at=started_at,
            duration_seconds=duration,
        )
        self._finish(status, duration)
        return result

    def _finish(self, status: TransferStatus, duration: float) -> None:
        progress = self.aggregator.snapshot() if self.aggregator else None
        self.log.transfer_finished(
            self.transfer_id,
            self.direction,
            status,
            duration_ms=duration * 1000,
            files_transferred=progress.files_transferred if progress else 0,
            total_files=progress.total_files if progress else 0,
        )
        if self.metrics:
            self.metrics.record_run(self.direction, status, duration)

    def _make_executor(self, concurrent: bool) -> ThrottledFailFastExecutor:
        width = self.config.concurrent_service_requests if concurrent else 1
        self.executor = ThrottledFailFastExecutor(max_concurrency=width)
        return self.executor

    def _progress_reporter(self, item_key: str) -> Callable[[ItemProgress], None]:
        """Forward one item's progress events to the aggregator."""

        def report(progress: ItemProgress) -> None:
            if self.aggregator is not None:
                self.aggregator.on_item_progress(
                    item_key, progress.bytes_delta, progress.is_complete, progress.total_bytes
                )
            if self.metrics:
                self.metrics.record_bytes(self.direction, progress.bytes_delta)

        return report

    async def _run_item(
        self, key: str, size: int, transfer: Callable[[], Awaitable[ItemTransferResult]]
    ) -> ItemTransferResult:
        """
        Run one item's transfer unit with logging and metrics.

        Errors that are not part of the package's hierarchy are wrapped in
        ``ItemTransferError``.
        """
        self.log.item_started(key, size)
        if self.metrics:
            self.metrics.item_started(self.direction)
        started = time.monotonic()

        try:
            result = await transfer()
        except (TransferCancelledError, asyncio.CancelledError):
            self._item_settled("cancelled")
            raise
        except DirTransferError as e:
            self._item_settled("failed")
            self.log.item_failed(key, e)
            raise
        except Exception as e:
            self._item_settled("failed")
            self.log.item_failed(key, e)
            msg = f"Failed to {self.direction.value} `{key}`: {e}"
            raise ItemTransferError(msg, key=key, cause=e) from e

        self._item_settled("succeeded")
        self.log.item_completed(key, result.size, (time.monotonic() - started) * 1000)
        return result

    def _item_settled(self, outcome: str) -> None:
        if self.metrics:
            self.metrics.item_finished(self.direction, outcome)
