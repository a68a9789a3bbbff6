"""
Local work enumeration for uploads.
"""

import fnmatch
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from dirtransfer.core.exceptions import ValidationError
from dirtransfer.types import TransferItem


@dataclass
class LocalEnumerationResult:
    """Files selected for upload"""

    items: list[TransferItem] = field(default_factory=list)
    total_bytes: int = 0

    @property
    def total_items(self) -> int:
        return len(self.items)


class LocalEnumerator:
    """
    Enumerates the files of a local directory.

    Item keys are paths relative to the directory, joined with ``/`` and
    sorted, so uploads are scheduled in a stable order.
    """

    def __init__(
        self,
        local_directory: str | os.PathLike,
        search_pattern: str = "*",
        recursive: bool = True,
    ):
        self.local_directory = Path(local_directory)
        self.search_pattern = search_pattern or "*"
        self.recursive = recursive

    def enumerate(self) -> LocalEnumerationResult:
        """
        Raises:
            ValidationError: If the directory does not exist
        """
        if not self.local_directory.is_dir():
            msg = f"The directory `{self.local_directory}` does not exist"
            raise ValidationError(msg, field="local_directory", path=str(self.local_directory))

        result = LocalEnumerationResult()
        for path in sorted(self._walk()):
            stat = path.stat()
            relative = path.relative_to(self.local_directory).as_posix()
            result.items.append(
                TransferItem(
                    key=relative,
                    size=stat.st_size,
                    last_modified=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
                )
            )
            result.total_bytes += stat.st_size
        return result

    def _walk(self):
        for root, dirs, files in os.walk(self.local_directory):
            if not self.recursive:
                dirs.clear()
            for name in files:
                if fnmatch.fnmatch(name, self.search_pattern):
                    yield Path(root) / name
