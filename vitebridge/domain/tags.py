"""
HTML tag generation from a manifest.

Every generator starts at the chunk stored under ``name`` (the source path,
e.g. ``src/main.tsx``) and prefixes emitted URLs with ``prefix``. The CSS and
preload walks follow static ``imports`` depth-first in pre-order and visit
each chunk once; ``dynamicImports`` are loaded lazily by the browser and are
never followed. Keys missing from the manifest end their branch.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vitebridge.domain.manifest import Chunk


def stylesheet_tag(prefix: str, path: str) -> str:
    return f'<link rel="stylesheet" href="{prefix}/{path}">'


def module_tag(prefix: str, path: str) -> str:
    return f'<script type="module" src="{prefix}/{path}"></script>'


def modulepreload_tag(prefix: str, path: str) -> str:
    return f'<link rel="modulepreload" href="{prefix}/{path}">'


def walk_imports(manifest: Mapping[str, Chunk], name: str) -> Iterator[Chunk]:
    """Yield the chunks statically reachable from ``name`` in pre-order, once each."""
    seen: set[str] = set()
    # Explicit stack so deep import chains cannot hit the recursion limit.
    stack = [name]
    while stack:
        key = stack.pop()
        if key in seen:
            continue
        seen.add(key)

        chunk = manifest.get(key)
        if chunk is None:
            continue
        yield chunk

        stack.extend(reversed(chunk.imports))


def _collect(
    manifest: Mapping[str, Chunk], name: str, emit: Callable[[Chunk], Iterator[str]]
) -> str:
    return "".join(tag for chunk in walk_imports(manifest, name) for tag in emit(chunk))


def generate_css(manifest: Mapping[str, Chunk], name: str, prefix: str = "") -> str:
    """Stylesheet links for the chunk and its static imports."""

    def emit(chunk: Chunk) -> Iterator[str]:
        for css in chunk.css:
            yield stylesheet_tag(prefix, css)

    return _collect(manifest, name, emit)


def generate_modules(manifest: Mapping[str, Chunk], name: str, prefix: str = "") -> str:
    """The module script of the chunk itself; its imports load through the module graph."""
    chunk = manifest.get(name)
    if chunk is None or not chunk.file:
        return ""
    return module_tag(prefix, chunk.file)


def generate_preload_modules(manifest: Mapping[str, Chunk], name: str, prefix: str = "") -> str:
    """Module preload links for the chunk and its static imports."""

    def emit(chunk: Chunk) -> Iterator[str]:
        if chunk.file:
            yield modulepreload_tag(prefix, chunk.file)

    return _collect(manifest, name, emit)
