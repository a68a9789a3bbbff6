# ============================================
# FILE: dirtransfer/types.py
# ============================================

"""
All type definitions, enums, and dataclasses

Shared by the enumerators, the executor, the commands and the CLI.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class TransferDirection(Enum):
    """Direction of a directory transfer"""

    DOWNLOAD = "download"
    UPLOAD = "upload"


class TransferStatus(Enum):
    """Terminal outcome of a directory transfer run"""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


class ExecutorState(Enum):
    """Lifecycle of a throttled fail-fast run"""

    PENDING = "pending"
    LISTING = "listing"
    SCHEDULING = "scheduling"
    DRAINING = "draining"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TransferItem:
    """
    One object (or local file) to transfer.

    For downloads ``key`` is the remote object key. For uploads it is the
    path of the file relative to the local directory, using ``/``.
    """

    key: str
    size: int
    last_modified: datetime


@dataclass(frozen=True)
class ListPage:
    """One page returned by a remote listing call"""

    entries: list[TransferItem]
    next_cursor: str | None = None


@dataclass(frozen=True)
class ItemProgress:
    """Incremental progress reported by a single transfer unit"""

    bytes_delta: int
    is_complete: bool
    total_bytes: int


ProgressCallback = Callable[["DirectoryProgress"], None]
ItemProgressCallback = Callable[[ItemProgress], None]


@dataclass(frozen=True)
class DirectoryProgress:
    """
    Snapshot of a directory transfer's progress.

    ``current_file`` and the per-file byte counts are only populated when
    files are transferred one at a time. With concurrent transfers there is
    no single current file, so they are ``None`` and ``0``.
    """

    files_transferred: int
    total_files: int
    transferred_bytes: int
    total_bytes: int
    current_file: str | None = None
    transferred_bytes_for_current_file: int = 0
    total_bytes_for_current_file: int = 0

    @property
    def percent_done(self) -> float:
        """Percentage of bytes transferred (0-100)."""
        if self.total_bytes <= 0:
            return 100.0 if self.files_transferred >= self.total_files else 0.0
        return min(100.0, self.transferred_bytes * 100.0 / self.total_bytes)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "files_transferred": self.files_transferred,
            "total_files": self.total_files,
            "transferred_bytes": self.transferred_bytes,
            "total_bytes": self.total_bytes,
            "current_file": self.current_file,
            "transferred_bytes_for_current_file": self.transferred_bytes_for_current_file,
            "total_bytes_for_current_file": self.total_bytes_for_current_file,
            "percent_done": round(self.percent_done, 2),
        }

    def __str__(self) -> str:
        return (
            f"Total Files: {self.total_files}, Transferred Files {self.files_transferred}, "
            f"Total Bytes: {self.total_bytes}, Transferred Bytes: {self.transferred_bytes}"
        )


@dataclass
class DirectoryTransferRequest:
    """
    Request to download every object under a prefix into a local directory.

    Attributes:
        bucket: Remote container name
        prefix: Key prefix treated as the remote "directory"
        local_directory: Local root the objects are written under
        download_files_concurrently: Use the configured concurrency width
            instead of transferring one file at a time
        modified_since: Only objects modified strictly after this time
        unmodified_since: Only objects modified at or before this time
        disable_slash_correction: Use ``prefix`` verbatim as a key fragment
            instead of appending a trailing ``/``
        progress_callback: Receives a ``DirectoryProgress`` per item event
    """

    bucket: str
    prefix: str
    local_directory: str
    download_files_concurrently: bool = False
    modified_since: datetime | None = None
    unmodified_since: datetime | None = None
    disable_slash_correction: bool = False
    progress_callback: ProgressCallback | None = field(default=None, repr=False)


@dataclass
class UploadDirectoryRequest:
    """
    Request to upload the files of a local directory under a key prefix.

    Attributes:
        bucket: Remote container name
        local_directory: Local root to read files from
        key_prefix: Prefix prepended to every uploaded key
        search_pattern: ``fnmatch`` pattern applied to file names
        recursive: Descend into subdirectories
        upload_files_concurrently: Use the configured concurrency width
        progress_callback: Receives a ``DirectoryProgress`` per item event
    """

    bucket: str
    local_directory: str
    key_prefix: str = ""
    search_pattern: str = "*"
    recursive: bool = True
    upload_files_concurrently: bool = False
    progress_callback: ProgressCallback | None = field(default=None, repr=False)


@dataclass
class ItemTransferResult:
    """Outcome of one successfully transferred item"""

    key: str
    source: str
    destination: str
    size: int


@dataclass
class DirectoryTransferResult:
    """
    Terminal outcome of one directory transfer run.

    Attributes:
        status: SUCCEEDED, FAILED or CANCELLED
        direction: Download or upload
        error: The error that ended the run, if any
        items: Items transferred successfully, in settlement order
        progress: Last progress snapshot
        started_at: Run start time
        duration_seconds: Wall-clock duration
    """

    status: TransferStatus
    direction: TransferDirection
    error: BaseException | None = None
    items: list[ItemTransferResult] = field(default_factory=list)
    progress: DirectoryProgress | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    duration_seconds: float = 0.0

    @property
    def success(self) -> bool:
        """Check if the run succeeded."""
        return self.status == TransferStatus.SUCCEEDED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "status": self.status.value,
            "direction": self.direction.value,
            "error": str(self.error) if self.error else None,
            "error_type": type(self.error).__name__ if self.error else None,
            "items": len(self.items),
            "progress": self.progress.to_dict() if self.progress else None,
            "started_at": self.started_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 2),
        }
