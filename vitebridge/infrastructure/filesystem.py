"""
Read-only asset filesystems.

The handler never touches ``os`` paths directly: it reads the build output
(or the Vite project root in development) through an :class:`AssetFS`, so
that a directory on disk and an in-memory tree behave the same way.
Paths are slash-separated and relative to the filesystem root; a leading
slash is ignored.
"""

from __future__ import annotations

import posixpath
from abc import ABC, abstractmethod
from collections.abc import Mapping
from pathlib import Path


def clean_path(path: str) -> str:
    """Normalise ``path`` to a root-relative form, or ``""`` for the root itself.

    Raises ``FileNotFoundError`` for paths that escape the root.
    """
    normalized = posixpath.normpath("/" + path.replace("\\", "/")).lstrip("/")
    if normalized in ("", "."):
        return ""
    if normalized == ".." or normalized.startswith("../"):
        raise FileNotFoundError(path)
    return normalized


class AssetFS(ABC):
    """Minimal read-only filesystem interface."""

    @abstractmethod
    def read_bytes(self, path: str) -> bytes:
        """Return the content of a file, raising ``FileNotFoundError`` when absent."""

    @abstractmethod
    def is_file(self, path: str) -> bool: ...

    @abstractmethod
    def is_dir(self, path: str) -> bool: ...

    @abstractmethod
    def sub(self, directory: str) -> AssetFS:
        """Return the filesystem rooted at ``directory``."""

    def file_path(self, path: str) -> Path | None:
        """Local path of a regular file, or ``None`` if absent or not backed by disk."""
        return None


class DirectoryFS(AssetFS):
    """Filesystem backed by a directory on disk."""

    def __init__(self, root: str | Path):
        self.root = Path(root).resolve()

    def __repr__(self) -> str:
        return f"DirectoryFS({str(self.root)!r})"

    def _resolve(self, path: str) -> Path:
        relative = clean_path(path)
        target = (self.root / relative).resolve() if relative else self.root
        # Symlinks may still point outside of the root.
        if target != self.root and self.root not in target.parents:
            raise FileNotFoundError(path)
        return target

    def read_bytes(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise FileNotFoundError(path)
        return target.read_bytes()

    def is_file(self, path: str) -> bool:
        try:
            return self._resolve(path).is_file()
        except FileNotFoundError:
            return False

    def is_dir(self, path: str) -> bool:
        try:
            return self._resolve(path).is_dir()
        except FileNotFoundError:
            return False

    def sub(self, directory: str) -> DirectoryFS:
        return DirectoryFS(self._resolve(directory))

    def file_path(self, path: str) -> Path | None:
        try:
            target = self._resolve(path)
        except FileNotFoundError:
            return None
        return target if target.is_file() else None


class MemoryFS(AssetFS):
    """In-memory filesystem mapping relative paths to file contents."""

    def __init__(self, files: Mapping[str, bytes | str] | None = None):
        self.files: dict[str, bytes] = {}
        for path, content in (files or {}).items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            self.files[clean_path(path)] = data

    def __repr__(self) -> str:
        return f"MemoryFS({sorted(self.files)!r})"

    def read_bytes(self, path: str) -> bytes:
        try:
            return self.files[clean_path(path)]
        except KeyError:
            raise FileNotFoundError(path) from None

    def is_file(self, path: str) -> bool:
        try:
            return clean_path(path) in self.files
        except FileNotFoundError:
            return False

    def is_dir(self, path: str) -> bool:
        try:
            relative = clean_path(path)
        except FileNotFoundError:
            return False
        if not relative:
            return True
        prefix = relative + "/"
        return any(name.startswith(prefix) for name in self.files)

    def sub(self, directory: str) -> MemoryFS:
        relative = clean_path(directory)
        if not relative:
            return MemoryFS(self.files)
        prefix = relative + "/"
        return MemoryFS(
            {name[len(prefix):]: data for name, data in self.files.items() if name.startswith(prefix)}
        )
