"""
Mode resolution: decides where asset tags come from.

A resolver is built once from a :class:`ViteConfig` and keeps its mode for
its whole life. :class:`DevelopmentMode` points the browser at the Vite dev
server and never reads a manifest; :class:`ProductionMode` loads the build
manifest at construction and generates tags from it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Optional

from markupsafe import Markup

from vitebridge.domain.manifest import Chunk, Manifest, parse_manifest
from vitebridge.domain.metadata import Metadata
from vitebridge.domain.scaffolding import Scaffolding
from vitebridge.infrastructure.config import DEFAULT_DEV_ENTRY, DEFAULT_VITE_URL, ViteConfig
from vitebridge.infrastructure.exceptions import (
    ChunkNotFoundError,
    ConfigurationError,
    ManifestOpenError,
)
from vitebridge.infrastructure.filesystem import AssetFS
from vitebridge.infrastructure.logging import get_logger, log_operation

logger = get_logger(__name__)


@dataclass(frozen=True)
class PageData:
    """Values available to page templates."""

    is_dev: bool
    vite_entry: str = ""
    vite_url: str = ""
    metadata: Markup = Markup("")
    plugin_react_preamble: Markup = Markup("")
    style_sheets: Markup = Markup("")
    modules: Markup = Markup("")
    preload_modules: Markup = Markup("")
    scripts: Markup = Markup("")

    def with_extras(self, metadata: Optional[Metadata] = None, scripts: Optional[str] = None) -> PageData:
        """Return a copy carrying request-scoped metadata and trusted extra scripts."""
        changes = {}
        if metadata is not None:
            changes["metadata"] = metadata.render()
        if scripts:
            changes["scripts"] = Markup(scripts)
        return replace(self, **changes) if changes else self


@log_operation("load_manifest")
def load_manifest(fs: AssetFS, path: str) -> Manifest:
    """
    Read and parse the manifest stored at ``path`` inside ``fs``.

    Raises:
        ManifestOpenError: If the file cannot be read
        ManifestParseError: If its content is malformed
    """
    try:
        data = fs.read_bytes(path)
    except OSError as exc:
        raise ManifestOpenError(path, exc.strerror or f"{path}: file does not exist") from exc
    return parse_manifest(data, path=path)


class ModeResolver(ABC):
    """Produces :class:`PageData` for one mode; never changes mode."""

    is_dev: bool

    @staticmethod
    def from_config(config: ViteConfig) -> ModeResolver:
        """
        Build the resolver matching ``config.is_dev``.

        Raises:
            ConfigurationError: If ``config.fs`` is missing
            ManifestOpenError: Production only, manifest cannot be opened
            ManifestParseError: Production only, manifest is malformed
        """
        if config.fs is None:
            raise ConfigurationError("fs is nil", config_key="fs")
        if config.is_dev:
            return DevelopmentMode(url=config.url, entry=config.dev_entry, template=config.template)
        return ProductionMode(
            manifest=load_manifest(config.fs, config.manifest),
            entry=config.entry,
            prefix=config.assets_url_prefix,
        )

    @abstractmethod
    def page_data(self) -> PageData: ...


class DevelopmentMode(ModeResolver):
    is_dev = True

    def __init__(
        self,
        url: str = DEFAULT_VITE_URL,
        entry: str = "",
        template: Scaffolding = Scaffolding.REACT,
    ):
        self.url = url or DEFAULT_VITE_URL
        self.entry = entry or DEFAULT_DEV_ENTRY
        self.template = template

    def __repr__(self) -> str:
        return f"DevelopmentMode(url={self.url!r}, entry={self.entry!r}, template={self.template.value!r})"

    def page_data(self) -> PageData:
        return PageData(
            is_dev=True,
            vite_entry=self.entry,
            vite_url=self.url,
            plugin_react_preamble=Markup(self.template.preamble(self.url)),
        )


class ProductionMode(ModeResolver):
    is_dev = False

    def __init__(self, manifest: Manifest, entry: str = "", prefix: str = ""):
        self.manifest = manifest
        self.entry = entry
        self.prefix = prefix

    def __repr__(self) -> str:
        return f"ProductionMode(entry={self.entry!r}, prefix={self.prefix!r}, chunks={len(self.manifest)})"

    def resolve_chunk(self) -> Chunk:
        """
        Return the chunk of the configured entry.

        Without a configured entry the manifest's entry point is used; with
        one, only an entry chunk whose ``src`` matches is accepted.

        Raises:
            ChunkNotFoundError: If no entry chunk matches
        """
        if not self.entry:
            entries = self.manifest.get_entry_points()
            if len(entries) > 1:
                logger.warning(
                    "No entry configured and manifest has %d entries; using %r",
                    len(entries),
                    entries[0].src,
                )
            chunk = self.manifest.get_entry_point()
        else:
            chunk = self.manifest.find_entry(self.entry)
        if chunk is None:
            raise ChunkNotFoundError(self.entry)
        return chunk

    def page_data(self) -> PageData:
        chunk = self.resolve_chunk()
        return PageData(
            is_dev=False,
            vite_entry=self.entry,
            style_sheets=Markup(self.manifest.generate_css(chunk.src, self.prefix)),
            modules=Markup(self.manifest.generate_modules(chunk.src, self.prefix)),
            preload_modules=Markup(self.manifest.generate_preload_modules(chunk.src, self.prefix)),
        )
