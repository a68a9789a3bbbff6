"""
In-Memory Object Store

Simple dict-backed implementation for testing and development.
Not suitable for production use.
"""

import asyncio
import os
from datetime import UTC, datetime
from pathlib import Path

import aiofiles

from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.exceptions import ListingNotSupportedError
from dirtransfer.stores.base import ObjectStore
from dirtransfer.types import ItemProgress, ItemProgressCallback, ListPage, TransferItem


class InMemoryObjectStore(ObjectStore):
    """
    In-memory implementation of an object store.

    Args:
        page_size: Maximum entries per listing page
        supports_v2: When False, token listing raises ListingNotSupportedError
            like an endpoint that only implements the legacy listing
        encryption_client: Report itself as an encryption-aware client
        chunk_size: Bytes per progress event during transfers
        latency: Seconds slept between chunks
    """

    def __init__(
        self,
        page_size: int = 1000,
        supports_v2: bool = True,
        encryption_client: bool = False,
        chunk_size: int = 64 * 1024,
        latency: float = 0.0,
    ):
        self.page_size = page_size
        self.supports_v2 = supports_v2
        self.encryption_client = encryption_client
        self.chunk_size = chunk_size
        self.latency = latency
        self._objects: dict[str, dict[str, tuple[bytes, datetime]]] = {}
        self.list_v2_calls = 0
        self.list_calls = 0

    @property
    def is_encryption_client(self) -> bool:
        return self.encryption_client

    def put(
        self, bucket: str, key: str, data: bytes, last_modified: datetime | None = None
    ) -> None:
        """Store an object directly (test and fixture helper)."""
        self._objects.setdefault(bucket, {})[key] = (
            data,
            last_modified or datetime.now(UTC),
        )

    def get(self, bucket: str, key: str) -> bytes | None:
        entry = self._objects.get(bucket, {}).get(key)
        return entry[0] if entry else None

    def keys(self, bucket: str) -> list[str]:
        return sorted(self._objects.get(bucket, {}))

    def _page_after(self, bucket: str, prefix: str, after: str | None) -> ListPage:
        keys = [
            key
            for key in self.keys(bucket)
            if key.startswith(prefix) and (after is None or key > after)
        ]
        page_keys = keys[: self.page_size]
        objects = self._objects.get(bucket, {})
        entries = [
            TransferItem(key=key, size=len(objects[key][0]), last_modified=objects[key][1])
            for key in page_keys
        ]
        next_cursor = page_keys[-1] if len(keys) > self.page_size else None
        return ListPage(entries=entries, next_cursor=next_cursor)

    async def list_objects_v2(
        self, bucket: str, prefix: str, continuation_token: str | None = None
    ) -> ListPage:
        self.list_v2_calls += 1
        if not self.supports_v2:
            raise ListingNotSupportedError(bucket=bucket, prefix=prefix)
        return self._page_after(bucket, prefix, continuation_token)

    async def list_objects(
        self, bucket: str, prefix: str, marker: str | None = None
    ) -> ListPage:
        self.list_calls += 1
        return self._page_after(bucket, prefix, marker)

    async def download_object(
        self,
        bucket: str,
        key: str,
        destination: str | os.PathLike,
        cancel_token: CancellationToken,
        on_progress: ItemProgressCallback | None = None,
    ) -> int:
        cancel_token.raise_if_cancelled(key)
        entry = self._objects.get(bucket, {}).get(key)
        if entry is None:
            msg = f"No such key: {key}"
            raise FileNotFoundError(msg)

        data = entry[0]
        total = len(data)
        path = Path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)

        async with aiofiles.open(path, "wb") as f:
            if total == 0 and on_progress:
                on_progress(ItemProgress(bytes_delta=0, is_complete=True, total_bytes=0))
            for offset in range(0, total, self.chunk_size):
                cancel_token.raise_if_cancelled(key)
                chunk = data[offset : offset + self.chunk_size]
                await f.write(chunk)
                if on_progress:
                    on_progress(
                        ItemProgress(
                            bytes_delta=len(chunk),
                            is_complete=offset + len(chunk) >= total,
                            total_bytes=total,
                        )
                    )
                await asyncio.sleep(self.latency)

        return total

    async def upload_object(
        self,
        bucket: str,
        key: str,
        source: str | os.PathLike,
        cancel_token: CancellationToken,
        on_progress: ItemProgressCallback | None = None,
    ) -> int:
        cancel_token.raise_if_cancelled(key)
        async with aiofiles.open(source, "rb") as f:
            data = await f.read()

        await asyncio.sleep(self.latency)
        self.put(bucket, key, data)
        if on_progress:
            on_progress(ItemProgress(bytes_delta=len(data), is_complete=True, total_bytes=len(data)))
        return len(data)
