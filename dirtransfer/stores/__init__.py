"""
Object stores for directory transfers.

Usage:
    >>> from dirtransfer.stores import S3ObjectStore, InMemoryObjectStore
    >>>
    >>> async with S3ObjectStore(region_name="eu-west-1") as store:
    ...     ...
"""

from .base import ObjectStore
from .memory import InMemoryObjectStore
from .s3 import AIOBOTO3_AVAILABLE, S3ObjectStore

__all__ = [
    "AIOBOTO3_AVAILABLE",
    "InMemoryObjectStore",
    "ObjectStore",
    "S3ObjectStore",
]
