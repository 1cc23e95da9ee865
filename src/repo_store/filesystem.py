"""Filesystem collaborator used to validate repo paths."""

from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """Answers whether a path exists."""

    def exists(self, path: str) -> bool: ...


class LocalFileSystem:
    """FileSystem backed by the local disk."""

    def exists(self, path: str) -> bool:
        return Path(path).exists()
