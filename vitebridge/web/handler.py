"""
Request handler serving a Vite application.

For each request, first match wins:

1. development with a public filesystem: files found there (except the index);
2. ``/`` and ``/index.html``: the rendered page;
3. paths with a registered template: the rendered page;
4. files of the asset filesystem, else 404.

Templates are Jinja2 sources receiving the fields of
:class:`~vitebridge.application.resolver.PageData` as variables
(``metadata``, ``style_sheets``, ``modules``, ``preload_modules``,
``plugin_react_preamble``, ``vite_url``, ``vite_entry``, ``is_dev``,
``scripts``). Register them, and the default metadata, before the first
request: the handler is shared read-only between concurrent requests and
refuses reconfiguration once it has served.
"""

from __future__ import annotations

import mimetypes
import os
import posixpath
from typing import Optional

from fastapi.staticfiles import StaticFiles
from jinja2 import Template
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import HTMLResponse, PlainTextResponse, Response
from starlette.types import Receive, Scope, Send

from vitebridge.application.fragment import page_context
from vitebridge.application.resolver import ModeResolver
from vitebridge.domain.metadata import Metadata
from vitebridge.infrastructure.config import ViteConfig
from vitebridge.infrastructure.exceptions import (
    ConfigurationError,
    DuplicateTemplateError,
    HandlerFrozenError,
    RenderError,
    ViteError,
    log_error_details,
)
from vitebridge.infrastructure.filesystem import AssetFS
from vitebridge.infrastructure.logging import LogContext, get_logger
from vitebridge.infrastructure.templating import create_environment

logger = get_logger(__name__)

FALLBACK_TEMPLATE = "fallback.html"
INDEX_TEMPLATE = "index.html"
INDEX_PATHS = ("/", "/index.html")


def normalize_path(path: str) -> str:
    """Clean a URL path: ``/..//articles/123/`` becomes ``/articles/123``."""
    cleaned = posixpath.normpath("/" + path.lstrip("/"))
    return "/" + cleaned.lstrip("/")


def get_route_path(scope: Scope) -> str:
    """Request path relative to the mount point of the handler."""
    path: str = scope["path"]
    root_path: str = scope.get("root_path", "")
    if not root_path or not path.startswith(root_path):
        return path
    if path == root_path:
        return "/"
    if path[len(root_path)] == "/":
        return path[len(root_path):]
    return path


def guess_media_type(path: str) -> str:
    media_type, _ = mimetypes.guess_type(path)
    return media_type or "application/octet-stream"


class ViteHandler:
    """
    Serves the Vite build (production) or fronts the Vite dev server (development).

    Example:
        >>> handler = ViteHandler(ViteConfig(fs=DirectoryFS("dist")))
        >>> handler.register_template("index.html", index_source)
        >>> app.mount("/", handler)
    """

    def __init__(self, config: ViteConfig):
        if config.fs is None:
            raise ConfigurationError("fs is nil", config_key="fs")

        self.config = config
        self.fs: AssetFS = config.fs
        self.resolver = ModeResolver.from_config(config)
        self.public_fs: Optional[AssetFS] = self._public_fs(config) if config.is_dev else None
        self.environment = create_environment()
        self.templates: dict[str, Template] = {
            FALLBACK_TEMPLATE: self.environment.get_template(FALLBACK_TEMPLATE),
        }
        self.default_metadata: Optional[Metadata] = None
        # Only file_response() is used; lookups go through the asset filesystems.
        self.static_files = StaticFiles(check_dir=False)
        self._serving = False

        logger.info(
            "Vite handler ready",
            extra={"mode": "development" if config.is_dev else "production", "entry": config.entry},
        )

    @staticmethod
    def _public_fs(config: ViteConfig) -> Optional[AssetFS]:
        if config.public_fs is not None:
            return config.public_fs
        # Vite's default publicDir
        if config.fs is not None and config.fs.is_dir("public"):
            return config.fs.sub("public")
        return None

    @property
    def is_dev(self) -> bool:
        return self.resolver.is_dev

    def _ensure_configurable(self, operation: str) -> None:
        if self._serving:
            raise HandlerFrozenError(operation)

    def register_template(self, name: str, text: str) -> None:
        """
        Register a page template under ``name``.

        ``name`` is the URL path the template serves (``/about``,
        ``about.html``, ...); use ``index.html`` for ``/``.

        Raises:
            DuplicateTemplateError: If ``name`` is already registered
            HandlerFrozenError: If the handler already served a request
            jinja2.TemplateSyntaxError: If ``text`` does not compile
        """
        self._ensure_configurable("register template")
        if name in self.templates:
            raise DuplicateTemplateError(name)
        self.templates[name] = self.environment.from_string(text)

    def set_default_metadata(self, metadata: Optional[Metadata]) -> None:
        """Metadata used for requests served without explicit metadata."""
        self._ensure_configurable("set default metadata")
        self.default_metadata = metadata

    def find_template(self, path: str) -> tuple[str, Template]:
        name = INDEX_TEMPLATE if path == "/" else path
        trimmed = name.removeprefix("/")
        for candidate in (
            name,
            trimmed,
            trimmed + ".html",
            trimmed.removesuffix(".html"),
            name + ".html",
        ):
            if candidate in self.templates:
                return candidate, self.templates[candidate]

        if len(self.templates) > 1:
            available = ", ".join(sorted(self.templates))
            logger.warning("Template %r not found. Available templates: %s", name, available)
        return FALLBACK_TEMPLATE, self.templates[FALLBACK_TEMPLATE]

    def render_page(
        self,
        path: str = "/",
        *,
        metadata: Optional[Metadata] = None,
        scripts: Optional[str] = None,
    ) -> str:
        """
        Render the page served at ``path``.

        Args:
            path: Normalized request path
            metadata: Page metadata, defaults to the handler's default metadata
            scripts: Trusted HTML appended to the head, e.g. inline scripts

        Raises:
            ChunkNotFoundError: If the configured entry is not in the manifest
            RenderError: If the template fails to render
        """
        page = self.resolver.page_data().with_extras(
            metadata=metadata if metadata is not None else self.default_metadata,
            scripts=scripts,
        )
        name, template = self.find_template(path)
        try:
            return template.render(page_context(page))
        except Exception as exc:
            raise RenderError(name, str(exc)) from exc

    def _serve_file(self, fs: AssetFS, path: str, scope: Scope) -> Response:
        local = fs.file_path(path)
        if local is not None:
            # Streams from disk with ETag/Last-Modified; answers 304 to matching conditional requests.
            return self.static_files.file_response(local, os.stat(local), scope)

        try:
            content = fs.read_bytes(path)
        except OSError:
            return PlainTextResponse("404 page not found", status_code=404)
        return Response(content=content, media_type=guess_media_type(path))

    def _render_response(
        self, path: str, metadata: Optional[Metadata], scripts: Optional[str]
    ) -> Response:
        try:
            return HTMLResponse(self.render_page(path, metadata=metadata, scripts=scripts))
        except ViteError as exc:
            logger.error("Failed to render page: %s", log_error_details(exc, {"path": path}))
            return PlainTextResponse("Internal server error", status_code=500)

    def serve(
        self,
        request: Request,
        *,
        metadata: Optional[Metadata] = None,
        scripts: Optional[str] = None,
    ) -> Response:
        """
        Answer ``request``.

        ``metadata`` and ``scripts`` only apply when a page is rendered.
        """
        self._serving = True
        path = normalize_path(get_route_path(request.scope))
        is_index = path in INDEX_PATHS

        with LogContext(request_path=path, request_method=request.method):
            if self.public_fs is not None and not is_index and self.public_fs.is_file(path):
                logger.debug("Serving public file %s", path)
                return self._serve_file(self.public_fs, path, request.scope)

            if is_index or path in self.templates:
                return self._render_response(path, metadata, scripts)

            if self.fs.is_file(path):
                return self._serve_file(self.fs, path, request.scope)

            return PlainTextResponse("404 page not found", status_code=404)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            raise RuntimeError(f"ViteHandler cannot serve {scope['type']!r} connections")
        response = await run_in_threadpool(self.serve, Request(scope, receive))
        await response(scope, receive, send)
