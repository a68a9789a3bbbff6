"""
Mapping between remote keys and local paths.

Remote keys are untrusted data: every mapped path is checked to stay inside
the local directory before anything is written or read.
"""

import os
from pathlib import Path

from dirtransfer.core.exceptions import ValidationError

KEY_SEPARATOR = "/"


def effective_prefix_length(prefix: str, disable_slash_correction: bool = False) -> int:
    """
    Number of leading characters stripped from each key.

    With slash correction disabled a prefix such as ``logs/2024-0`` is a key
    fragment, not a directory: keys are mapped relative to its parent
    (``logs/``), so ``logs/2024-01.txt`` becomes ``2024-01.txt``.
    """
    if disable_slash_correction and not prefix.endswith(KEY_SEPARATOR):
        return prefix.rfind(KEY_SEPARATOR) + 1
    return len(prefix)


def relative_key(key: str, prefix_length: int) -> str:
    return key[prefix_length:]


def is_path_rooted_in(path: str | os.PathLike, directory: str | os.PathLike) -> bool:
    """Check that ``path`` resolves strictly inside ``directory``."""
    full_path = Path(os.path.abspath(path))
    full_directory = Path(os.path.abspath(directory))
    return full_path != full_directory and full_path.is_relative_to(full_directory)


def key_to_local_path(key: str, prefix_length: int, local_directory: str | os.PathLike) -> Path:
    """
    Local destination of a remote key.

    Raises:
        ValidationError: If the key would land outside ``local_directory``
    """
    remainder = relative_key(key, prefix_length).replace(KEY_SEPARATOR, os.sep)
    candidate = os.path.join(local_directory, remainder)

    if not is_path_rooted_in(candidate, local_directory):
        msg = (
            f"The file `{candidate}` is not allowed outside of the target "
            f"directory `{local_directory}`"
        )
        raise ValidationError(msg, field="key", path=candidate, key=key)

    return Path(os.path.abspath(candidate))


def local_path_to_key(
    path: str | os.PathLike, local_directory: str | os.PathLike, key_prefix: str = ""
) -> str:
    """
    Remote key for a local file being uploaded.

    Raises:
        ValidationError: If the file is not inside ``local_directory``
    """
    if not is_path_rooted_in(path, local_directory):
        msg = f"The file `{path}` is not inside the source directory `{local_directory}`"
        raise ValidationError(msg, field="path", path=str(path))

    relative = os.path.relpath(os.path.abspath(path), os.path.abspath(local_directory))
    return key_prefix + relative.replace(os.sep, KEY_SEPARATOR)


def normalize_key_prefix(key_prefix: str | None) -> str:
    """Upload prefix: forward slashes, no leading slash, trailing slash if non-empty."""
    if not key_prefix:
        return ""
    prefix = key_prefix.replace("\\", KEY_SEPARATOR).lstrip(KEY_SEPARATOR)
    if prefix and not prefix.endswith(KEY_SEPARATOR):
        prefix += KEY_SEPARATOR
    return prefix


def prepare_local_directory(local_directory: str | os.PathLike) -> Path:
    """
    Make sure the download root exists and is a directory.

    Raises:
        ValidationError: If a plain file already exists at ``local_directory``
    """
    directory = Path(local_directory)
    if directory.exists() and not directory.is_dir():
        msg = (
            f"A file `{local_directory}` already exists with the same name "
            "specified by `local_directory`"
        )
        raise ValidationError(msg, field="local_directory", path=str(local_directory))

    try:
        directory.mkdir(parents=True, exist_ok=True)
    except (FileExistsError, NotADirectoryError) as e:
        msg = f"Cannot create directory `{local_directory}`: a parent path is a file"
        raise ValidationError(msg, field="local_directory", path=str(local_directory)) from e
    return directory
