"""
Directory transfer commands.
"""

from .base import DirectoryCommand
from .download_directory import DownloadDirectoryCommand
from .upload_directory import UploadDirectoryCommand

__all__ = [
    "DirectoryCommand",
    "DownloadDirectoryCommand",
    "UploadDirectoryCommand",
]
