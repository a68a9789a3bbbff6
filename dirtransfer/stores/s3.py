# ============================================
# FILE: dirtransfer/stores/s3.py
# ============================================

"""
S3 Object Store

AWS S3 (and S3-compatible endpoints) implementation of the object store,
built on aioboto3.

Requires: pip install dirtransfer[aws]
"""

import asyncio
import os
import uuid
from pathlib import Path
from typing import Any

import aiofiles

from dirtransfer.core.cancellation import CancellationToken
from dirtransfer.core.exceptions import (
    ListingError,
    ListingNotSupportedError,
    MissingDependencyError,
)
from dirtransfer.core.logger import get_logger
from dirtransfer.stores.base import ObjectStore
from dirtransfer.types import ItemProgress, ItemProgressCallback, ListPage, TransferItem

try:
    import aioboto3
    from botocore.exceptions import ClientError

    AIOBOTO3_AVAILABLE = True
except ImportError:
    AIOBOTO3_AVAILABLE = False  # pragma: no cover
    aioboto3 = None  # pragma: no cover
    ClientError = None  # pragma: no cover

logger = get_logger(__name__)

DEFAULT_CHUNK_SIZE = 256 * 1024


def is_not_implemented_error(error: BaseException) -> bool:
    """Check whether a botocore error means the endpoint lacks the operation."""
    response = getattr(error, "response", None) or {}
    code = str(response.get("Error", {}).get("Code", ""))
    status = response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return status == 501 or code in ("NotImplemented", "501")


class S3ObjectStore(ObjectStore):
    """
    aioboto3 implementation of the object store.

    The client is created lazily and reused by every call; use the store as
    an async context manager (or call ``close()``) to release it.

    Example:
        >>> async with S3ObjectStore(region_name="us-east-1") as store:
        ...     utility = TransferUtility(store)
        ...     await utility.download_directory("my-bucket", "reports/", "/tmp/reports")
    """

    def __init__(
        self,
        region_name: str | None = None,
        endpoint_url: str | None = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        encryption_client: bool = False,
        session_kwargs: dict[str, Any] | None = None,
        **client_kwargs,
    ):
        if not AIOBOTO3_AVAILABLE:
            msg = "aioboto3"
            raise MissingDependencyError(msg, "S3 object store")

        self.region_name = region_name
        self.endpoint_url = endpoint_url
        self.chunk_size = chunk_size
        self.encryption_client = encryption_client
        self.session_kwargs = session_kwargs or {}
        self.client_kwargs = client_kwargs
        self._session = None
        self._s3_client = None
        self._lock = asyncio.Lock()

    @property
    def is_encryption_client(self) -> bool:
        return self.encryption_client

    async def _get_s3_client(self):
        """Get S3 client, creating if necessary"""
        async with self._lock:
            if self._s3_client is None:
                try:
                    self._session = aioboto3.Session(**self.session_kwargs)
                    self._s3_client = await self._session.client(
                        "s3",
                        region_name=self.region_name,
                        endpoint_url=self.endpoint_url,
                        **self.client_kwargs,
                    ).__aenter__()
                except Exception as e:
                    msg = f"Failed to create S3 client: {e}"
                    raise ConnectionError(msg) from e

        return self._s3_client

    @staticmethod
    def _entries(response: dict[str, Any]) -> list[TransferItem]:
        return [
            TransferItem(
                key=obj["Key"],
                size=int(obj.get("Size", 0)),
                last_modified=obj["LastModified"],
            )
            for obj in response.get("Contents", []) or []
        ]

    async def list_objects_v2(
        self, bucket: str, prefix: str, continuation_token: str | None = None
    ) -> ListPage:
        s3 = await self._get_s3_client()

        params: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if continuation_token:
            params["ContinuationToken"] = continuation_token

        try:
            response = await s3.list_objects_v2(**params)
        except ClientError as e:
            if is_not_implemented_error(e):
                raise ListingNotSupportedError(bucket=bucket, prefix=prefix) from e
            msg = f"Failed to list s3://{bucket}/{prefix}: {e}"
            raise ListingError(msg, bucket=bucket, prefix=prefix) from e

        next_token = response.get("NextContinuationToken") if response.get("IsTruncated") else None
        return ListPage(entries=self._entries(response), next_cursor=next_token)

    async def list_objects(
        self, bucket: str, prefix: str, marker: str | None = None
    ) -> ListPage:
        s3 = await self._get_s3_client()

        params: dict[str, Any] = {"Bucket": bucket, "Prefix": prefix}
        if marker:
            params["Marker"] = marker

        try:
            response = await s3.list_objects(**params)
        except ClientError as e:
            msg = f"Failed to list s3://{bucket}/{prefix}: {e}"
            raise ListingError(msg, bucket=bucket, prefix=prefix) from e

        entries = self._entries(response)
        next_marker = None
        if response.get("IsTruncated"):
            # NextMarker is only returned when a delimiter is given
            next_marker = response.get("NextMarker") or (entries[-1].key if entries else None)
        return ListPage(entries=entries, next_cursor=next_marker)

    async def download_object(
        self,
        bucket: str,
        key: str,
        destination: str | os.PathLike,
        cancel_token: CancellationToken,
        on_progress: ItemProgressCallback | None = None,
    ) -> int:
        """
        Stream an object into ``destination``.

        Bytes go to a temporary file next to the destination, which replaces
        the destination only once the whole body was read.
        """
        cancel_token.raise_if_cancelled(key)
        s3 = await self._get_s3_client()

        path = Path(destination)
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.part")

        response = await s3.get_object(Bucket=bucket, Key=key)
        total = int(response.get("ContentLength", 0) or 0)
        transferred = 0

        try:
            async with response["Body"] as stream, aiofiles.open(temp_path, "wb") as f:
                while True:
                    cancel_token.raise_if_cancelled(key)
                    chunk = await stream.read(self.chunk_size)
                    if not chunk:
                        break
                    await f.write(chunk)
                    transferred += len(chunk)
                    if on_progress:
                        on_progress(
                            ItemProgress(bytes_delta=len(chunk), is_complete=False, total_bytes=total)
                        )

            # ContentLength can be missing or wrong, so completion is signalled once
            if on_progress:
                on_progress(
                    ItemProgress(bytes_delta=0, is_complete=True, total_bytes=total or transferred)
                )

            os.replace(temp_path, path)
        except BaseException:
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug(f"Downloaded s3://{bucket}/{key} -> {path} ({transferred} bytes)")
        return transferred

    async def upload_object(
        self,
        bucket: str,
        key: str,
        source: str | os.PathLike,
        cancel_token: CancellationToken,
        on_progress: ItemProgressCallback | None = None,
    ) -> int:
        cancel_token.raise_if_cancelled(key)
        s3 = await self._get_s3_client()

        async with aiofiles.open(source, "rb") as f:
            data = await f.read()

        cancel_token.raise_if_cancelled(key)
        await s3.put_object(Bucket=bucket, Key=key, Body=data)

        if on_progress:
            on_progress(ItemProgress(bytes_delta=len(data), is_complete=True, total_bytes=len(data)))

        logger.debug(f"Uploaded {source} -> s3://{bucket}/{key} ({len(data)} bytes)")
        return len(data)

    async def close(self) -> None:
        """Close S3 client"""
        if self._s3_client:
            await self._s3_client.__aexit__(None, None, None)
            self._s3_client = None
            self._session = None

    async def __aenter__(self):
        await self._get_s3_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
