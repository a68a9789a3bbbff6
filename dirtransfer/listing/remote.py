"""
Remote work enumeration.

Lists every object under a prefix, page by page, keeping only the objects
that should become files: directory markers, objects outside the
modification-time window, and encryption instruction files are skipped.

When the endpoint rejects the token-based listing as not implemented, the
whole enumeration is restarted once with the legacy marker-based listing.
"""

from collections.abc import AsyncIterator
from dataclasses import dataclass, field
from datetime import UTC, datetime

from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.exceptions import (
    DirTransferError,
    ListingError,
    ListingNotSupportedError,
)
from dirtransfer.core.logger import get_logger
from dirtransfer.stores.base import ObjectStore
from dirtransfer.types import DirectoryTransferRequest, ListPage, TransferItem

logger = get_logger(__name__)

INSTRUCTION_FILE_SUFFIX = ".instruction"


def normalize_prefix(prefix: str | None, disable_slash_correction: bool = False) -> str:
    """
    Prefix actually sent to the listing call.

    >>> normalize_prefix("/docs/2024")
    'docs/2024/'
    >>> normalize_prefix("/")
    ''
    """
    if prefix is None:
        return ""

    normalized = prefix.replace("\\", "/")

    if not disable_slash_correction and not normalized.endswith("/"):
        normalized += "/"

    if normalized.startswith("/"):
        normalized = "" if len(normalized) == 1 else normalized[1:]

    return normalized


def is_instruction_file(key: str) -> bool:
    """Client-side encryption metadata object"""
    return key.endswith(INSTRUCTION_FILE_SUFFIX)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass(frozen=True)
class ObjectFilter:
    """
    Inclusion filter applied to every listed object.

    Attributes:
        modified_since: Keep objects modified strictly after this time
        unmodified_since: Keep objects modified at or before this time
        skip_instruction_files: Drop ``.instruction`` objects
    """

    modified_since: datetime | None = None
    unmodified_since: datetime | None = None
    skip_instruction_files: bool = False

    def __call__(self, entry: TransferItem) -> bool:
        if entry.key.endswith("/"):
            return False

        last_modified = _as_utc(entry.last_modified)
        if self.modified_since is not None and last_modified <= _as_utc(self.modified_since):
            return False
        if self.unmodified_since is not None and last_modified > _as_utc(self.unmodified_since):
            return False

        return not (self.skip_instruction_files and is_instruction_file(entry.key))


@dataclass
class EnumerationResult:
    """Objects selected for transfer and the prefix used to list them"""

    items: list[TransferItem] = field(default_factory=list)
    prefix: str = ""
    total_bytes: int = 0
    used_legacy_listing: bool = False

    @property
    def total_items(self) -> int:
        return len(self.items)


class RemoteEnumerator:
    """
    Enumerates the objects a download request should transfer.

    Example:
        >>> enumerator = RemoteEnumerator(store, request)
        >>> result = await enumerator.enumerate()
        >>> result.total_items, result.total_bytes
        (2, 300)
    """

    def __init__(self, store: ObjectStore, request: DirectoryTransferRequest):
        self.store = store
        self.bucket = request.bucket
        self.prefix = normalize_prefix(request.prefix, request.disable_slash_correction)
        self.object_filter = ObjectFilter(
            modified_since=request.modified_since,
            unmodified_since=request.unmodified_since,
            skip_instruction_files=store.is_encryption_client,
        )
        self.total_bytes = 0

    async def iter_items(
        self, legacy: bool = False, cancel_token: CancellationToken | None = None
    ) -> AsyncIterator[TransferItem]:
        """
        Lazily yield the selected objects, one page at a time.

        Each call re-runs the listing from the first page. ``total_bytes``
        grows as objects are yielded.
        """
        self.total_bytes = 0
        cursor: str | None = None

        while True:
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            page = await self._fetch_page(cursor, legacy)
            for entry in page.entries:
                if self.object_filter(entry):
                    self.total_bytes += entry.size
                    yield entry

            cursor = page.next_cursor
            if not cursor or not cursor.strip():
                break

    async def _fetch_page(self, cursor: str | None, legacy: bool) -> ListPage:
        if legacy:
            return await self.store.list_objects(self.bucket, self.prefix, cursor)
        return await self.store.list_objects_v2(self.bucket, self.prefix, cursor)

    async def enumerate(self, cancel_token: CancellationToken | None = None) -> EnumerationResult:
        """
        Collect every selected object.

        Raises:
            ListingError: If listing fails for any reason other than the
                token-based listing being unsupported
        """
        try:
            items = [item async for item in self.iter_items(cancel_token=cancel_token)]
            legacy = False
        except ListingNotSupportedError:
            logger.info(
                f"Token listing not supported for s3://{self.bucket}/{self.prefix}, "
                "falling back to legacy listing"
            )
            items = await self._collect_legacy(cancel_token)
            legacy = True

        return EnumerationResult(
            items=items,
            prefix=self.prefix,
            total_bytes=self.total_bytes,
            used_legacy_listing=legacy,
        )

    async def _collect_legacy(self, cancel_token: CancellationToken | None) -> list[TransferItem]:
        try:
            return [item async for item in self.iter_items(legacy=True, cancel_token=cancel_token)]
        except ListingNotSupportedError as e:
            msg = "Neither token nor legacy listing is supported by the endpoint"
            raise ListingError(msg, bucket=self.bucket, prefix=self.prefix) from e
        except DirTransferError:
            raise
        except Exception as e:
            msg = f"Legacy listing failed: {e}"
            raise ListingError(msg, bucket=self.bucket, prefix=self.prefix) from e
