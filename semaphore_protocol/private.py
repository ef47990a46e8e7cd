"""Private JSON files for identities and the cached verification key."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from .config import PRIVATE_FILE_SUFFIX, default_private_dir
from .exceptions import ValidationError, storage_errors

logger = logging.getLogger(__name__)

_NON_ASCII = re.compile(r"[^\x00-\x7F]")
_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^a-zA-Z0-9_\-.]")


def clean_label(value: str) -> str:
    """
    Make a label safe to use as a file name or store key.

    Drops non-ASCII characters, turns whitespace runs into underscores and
    strips anything outside ``[a-zA-Z0-9_-.]``.
    """
    if not isinstance(value, str):
        raise ValidationError(f"label must be str, got {type(value).__name__}")
    cleaned = _NON_ASCII.sub("", value)
    cleaned = _WHITESPACE.sub("_", cleaned)
    return _UNSAFE.sub("", cleaned)


class PrivateFolder:
    """
    A folder of ``<name>.identity.json`` files.

    Args:
        path: Folder path, defaults to ``$SEMAPHORE_PRIVATE_DIR`` or ``~/.private``
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else default_private_dir()

    def file_path(self, name: str) -> Path:
        cleaned = clean_label(name)
        if not cleaned:
            raise ValidationError(f"invalid private file name: {name!r}")
        return self.path / f"{cleaned}{PRIVATE_FILE_SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.file_path(name).exists()

    def save(self, name: str, data: dict[str, Any]) -> Path:
        """
        Write ``data`` as pretty JSON, creating the folder if needed.

        Raises:
            StorageError: If the file cannot be written
        """
        file_path = self.file_path(name)
        with storage_errors(f"save private file {file_path.name}"):
            self.path.mkdir(parents=True, exist_ok=True)
            file_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.debug("Saved private file %s", file_path)
        return file_path

    def read(self, name: str) -> dict[str, Any] | None:
        """
        Read a private file.

        Returns:
            The decoded object, or None if the file does not exist

        Raises:
            StorageError: If the file exists but cannot be read or decoded
        """
        file_path = self.file_path(name)
        if not file_path.exists():
            return None
        with storage_errors(f"read private file {file_path.name}"):
            data = json.loads(file_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValidationError(f"private file {file_path.name} is not an object")
        return data
