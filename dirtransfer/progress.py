"""
Progress aggregation across concurrently completing items.
"""

import threading

from dirtransfer.core.logger import get_logger
from dirtransfer.types import DirectoryProgress, ProgressCallback

logger = get_logger(__name__)


class ProgressAggregator:
    """
    Thread-safe sink for per-item progress events.

    Keeps the run's aggregate counters and turns each item event into a
    ``DirectoryProgress`` snapshot handed to a single callback. Transfer
    units may report from worker threads, so counters are lock-guarded.

    In serial mode (one item in flight) snapshots also carry the current
    item's key and byte counts. In concurrent mode those fields stay empty.
    """

    def __init__(
        self,
        total_items: int,
        total_bytes: int,
        serial: bool,
        callback: ProgressCallback | None = None,
    ):
        self.total_items = total_items
        self.total_bytes = total_bytes
        self.serial = serial
        self._callback = callback
        self._lock = threading.Lock()
        self._completed_items = 0
        self._transferred_bytes = 0
        self._current_key: str | None = None
        self._current_transferred = 0
        self._current_total = 0

    @property
    def completed_items(self) -> int:
        with self._lock:
            return self._completed_items

    @property
    def transferred_bytes(self) -> int:
        with self._lock:
            return self._transferred_bytes

    def on_item_progress(
        self,
        item_key: str,
        bytes_delta: int,
        is_complete: bool,
        item_total_bytes: int,
    ) -> DirectoryProgress:
        """
        Record one progress event and notify the callback.

        Args:
            item_key: Key (relative to the prefix) of the reporting item
            bytes_delta: Bytes moved since the item's previous event
            is_complete: Whether this event finishes the item
            item_total_bytes: Size of the item

        Returns:
            The snapshot handed to the callback
        """
        with self._lock:
            self._transferred_bytes += bytes_delta
            if is_complete:
                self._completed_items += 1

            if self.serial:
                if item_key != self._current_key:
                    self._current_key = item_key
                    self._current_transferred = 0
                self._current_transferred += bytes_delta
                self._current_total = item_total_bytes

            snapshot = self._snapshot_locked()

        self._notify(snapshot)
        return snapshot

    def snapshot(self) -> DirectoryProgress:
        """Consistent copy of the current counters."""
        with self._lock:
            return self._snapshot_locked()

    def _snapshot_locked(self) -> DirectoryProgress:
        if self.serial:
            return DirectoryProgress(
                files_transferred=self._completed_items,
                total_files=self.total_items,
                transferred_bytes=self._transferred_bytes,
                total_bytes=self.total_bytes,
                current_file=self._current_key,
                transferred_bytes_for_current_file=self._current_transferred,
                total_bytes_for_current_file=self._current_total,
            )
        return DirectoryProgress(
            files_transferred=self._completed_items,
            total_files=self.total_items,
            transferred_bytes=self._transferred_bytes,
            total_bytes=self.total_bytes,
        )

    def _notify(self, snapshot: DirectoryProgress) -> None:
        if self._callback is None:
            return
        try:
            self._callback(snapshot)
        except Exception as e:
            logger.warning(f"Progress callback raised {type(e).__name__}: {e}")
