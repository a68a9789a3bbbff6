"""
Object Store Interface

Defines the contract the directory commands need from a remote key/object
store: paginated listing (token based, with a legacy marker based variant)
and single-object transfer units that honor a cancellation token and report
incremental progress.
"""

import os
from abc import ABC, abstractmethod

from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.types import ItemProgressCallback, ListPage


class ObjectStore(ABC):
    """Abstract interface for a remote object store"""

    @property
    def is_encryption_client(self) -> bool:
        """
        Whether this store performs client-side encryption.

        Encryption-aware stores keep their envelope metadata in separate
        ``.instruction`` objects, which are never transferred as files.
        """
        return False

    @abstractmethod
    async def list_objects_v2(
        self, bucket: str, prefix: str, continuation_token: str | None = None
    ) -> ListPage:
        """
        List one page of objects under a prefix, continuation-token style.

        Args:
            bucket: Container name
            prefix: Key prefix
            continuation_token: Cursor returned by the previous page

        Returns:
            The page's entries and the next cursor (None on the last page)

        Raises:
            ListingNotSupportedError: If the endpoint does not implement it
        """

    @abstractmethod
    async def list_objects(
        self, bucket: str, prefix: str, marker: str | None = None
    ) -> ListPage:
        """
        List one page of objects under a prefix, legacy marker style.

        Args:
            bucket: Container name
            prefix: Key prefix
            marker: Key after which listing resumes

        Returns:
            The page's entries and the next marker (None on the last page)
        """

    @abstractmethod
    async def download_object(
        self,
        bucket: str,
        key: str,
        destination: str | os.PathLike,
        cancel_token: CancellationToken,
        on_progress: ItemProgressCallback | None = None,
    ) -> int:
        """
        Download one object to a local file.

        Parent directories of ``destination`` are created as needed.

        Returns:
            Number of bytes written

        Raises:
            TransferCancelledError: If ``cancel_token`` trips mid-transfer
        """

    @abstractmethod
    async def upload_object(
        self,
        bucket: str,
        key: str,
        source: str | os.PathLike,
        cancel_token: CancellationToken,
        on_progress: ItemProgressCallback | None = None,
    ) -> int:
        """
        Upload one local file as an object.

        Returns:
            Number of bytes sent

        Raises:
            TransferCancelledError: If ``cancel_token`` trips before the upload
        """

    async def close(self) -> None:
        """Release connections held by the store."""

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
