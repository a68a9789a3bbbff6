"""
Work enumeration: which objects or files a directory transfer covers.
"""

from .local import LocalEnumerationResult, LocalEnumerator
from .remote import (
    INSTRUCTION_FILE_SUFFIX,
    EnumerationResult,
    ObjectFilter,
    RemoteEnumerator,
    is_instruction_file,
    normalize_prefix,
)

__all__ = [
    "INSTRUCTION_FILE_SUFFIX",
    "EnumerationResult",
    "LocalEnumerationResult",
    "LocalEnumerator",
    "ObjectFilter",
    "RemoteEnumerator",
    "is_instruction_file",
    "normalize_prefix",
]
