"""
Model of the manifest written by ``vite build --manifest``.

The manifest maps source paths (e.g. ``src/main.tsx``) to the chunks Vite
emitted for them. See https://vite.dev/guide/backend-integration.html.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from vitebridge.domain import tags
from vitebridge.infrastructure.exceptions import ManifestParseError


class Chunk(BaseModel):
    """A single entry in the manifest."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    file: str = ""
    name: str = ""
    src: str = ""
    css: list[str] = Field(default_factory=list)
    is_entry: bool = Field(False, alias="isEntry")
    is_dynamic_entry: bool = Field(False, alias="isDynamicEntry")
    imports: list[str] = Field(default_factory=list)
    dynamic_imports: list[str] = Field(default_factory=list, alias="dynamicImports")

    @field_validator("file", "name", "src", mode="before")
    def null_as_empty_string(cls, v):
        return "" if v is None else v

    @field_validator("css", "imports", "dynamic_imports", mode="before")
    def null_as_empty_list(cls, v):
        return [] if v is None else v

    @field_validator("is_entry", "is_dynamic_entry", mode="before")
    def null_as_false(cls, v):
        return False if v is None else v


_chunks_adapter = TypeAdapter(dict[str, Chunk])


class Manifest(Mapping[str, Chunk]):
    """Read-only mapping of source path to :class:`Chunk`, in document order."""

    def __init__(self, chunks: Mapping[str, Chunk] | None = None):
        self._chunks: dict[str, Chunk] = dict(chunks or {})

    def __getitem__(self, key: str) -> Chunk:
        return self._chunks[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._chunks)

    def __len__(self) -> int:
        return len(self._chunks)

    def __repr__(self) -> str:
        return f"Manifest({list(self._chunks)!r})"

    def get_chunk(self, key: str) -> Chunk | None:
        """Return the chunk for a source path, or ``None``."""
        return self._chunks.get(key)

    def get_entry_point(self) -> Chunk | None:
        """
        Return an entry chunk, or ``None`` if the manifest has none.

        When several entries exist the first one in document order is
        returned. Which one that is depends on how Vite ordered its output,
        so callers with more than one entry should ask for one by name.
        """
        return next((chunk for chunk in self._chunks.values() if chunk.is_entry), None)

    def get_entry_points(self) -> list[Chunk]:
        """Return every entry chunk in document order."""
        return [chunk for chunk in self._chunks.values() if chunk.is_entry]

    def find_entry(self, src: str) -> Chunk | None:
        """Return the entry chunk whose ``src`` is ``src``."""
        return next((chunk for chunk in self.get_entry_points() if chunk.src == src), None)

    def generate_css(self, name: str, prefix: str = "") -> str:
        return tags.generate_css(self, name, prefix)

    def generate_modules(self, name: str, prefix: str = "") -> str:
        return tags.generate_modules(self, name, prefix)

    def generate_preload_modules(self, name: str, prefix: str = "") -> str:
        return tags.generate_preload_modules(self, name, prefix)


def _describe(exc: ValidationError) -> str:
    first: dict[str, Any] = exc.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first['msg']}" if location else first["msg"]


def parse_manifest(data: bytes | str, path: str | None = None) -> Manifest:
    """
    Parse manifest JSON into a :class:`Manifest`.

    Args:
        data: Raw manifest content
        path: Optional file path, reported in errors

    Raises:
        ManifestParseError: If the content is not JSON or not shaped like a manifest

    Example:
        >>> manifest = parse_manifest(b'{"src/main.tsx": {"file": "assets/main.js", "isEntry": true}}')
        >>> manifest.get_entry_point().file
        'assets/main.js'
    """
    try:
        chunks = _chunks_adapter.validate_json(data)
    except ValidationError as exc:
        raise ManifestParseError(_describe(exc), path=path) from exc
    return Manifest(chunks)
