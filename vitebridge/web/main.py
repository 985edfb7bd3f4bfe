from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.responses import Response

from vitebridge.domain.metadata import Metadata
from vitebridge.infrastructure.config import Settings, get_settings
from vitebridge.infrastructure.logging import get_logger, setup_logging
from vitebridge.web.handler import ViteHandler

logger = get_logger(__name__)


def create_application(settings: Settings | None = None, handler: ViteHandler | None = None) -> FastAPI:
    """
    Build the FastAPI application serving the Vite frontend.

    Construction errors of the handler (missing or malformed manifest in
    production) propagate so the server does not start half-configured.
    """
    settings = settings or get_settings()
    if handler is None:
        handler = ViteHandler(settings.vite.with_filesystems())
        handler.set_default_metadata(Metadata(title=settings.app.title))

    app = FastAPI(
        title=settings.app.title,
        version=settings.app.version,
        debug=settings.app.debug,
    )
    app.state.vite = handler

    @app.get("/healthz", include_in_schema=False)
    async def healthz() -> dict[str, object]:
        return settings.get_environment_info()

    @app.api_route("/{path:path}", methods=["GET", "HEAD"], include_in_schema=False)
    def frontend(path: str, request: Request) -> Response:
        return request.app.state.vite.serve(request)

    logger.info("Application created", extra={"mode": "development" if handler.is_dev else "production"})
    return app


def configure_logging(settings: Settings) -> None:
    setup_logging(
        level=settings.logging.level,
        log_file=settings.logging.file_path,
        structured=settings.logging.structured,
        enable_console=settings.logging.console_enabled,
    )


def application_factory() -> FastAPI:
    """Entry point for ``uvicorn --factory``: configure logging, then build the app."""
    settings = get_settings()
    configure_logging(settings)
    return create_application(settings)
