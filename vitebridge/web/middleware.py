from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import PlainTextResponse, Response
from starlette.types import ASGIApp

from vitebridge.application.fragment import html_fragment
from vitebridge.application.resolver import ModeResolver
from vitebridge.infrastructure.config import ViteConfig
from vitebridge.infrastructure.exceptions import TemplateMarkerNotFoundError, ViteError, log_error_details
from vitebridge.infrastructure.logging import LogContext, get_logger

logger = get_logger(__name__)

HEAD_MARKER = "</head>"


def insert_html(content: bytes, marker: str, html: str) -> bytes:
    """
    Insert ``html`` right before the first occurrence of ``marker``.

    Raises:
        TemplateMarkerNotFoundError: If ``marker`` does not occur in ``content``
    """
    mb = marker.encode("utf-8")
    if mb not in content:
        raise TemplateMarkerNotFoundError(marker)
    return content.replace(mb, html.encode("utf-8") + mb, 1)


class ViteMiddleware(BaseHTTPMiddleware):
    """
    Injects the Vite tags into the ``<head>`` of HTML responses.

    Pass either a ``config`` or a prebuilt ``resolver``. Starlette builds
    middleware on the first request, so build the resolver up front to have
    manifest errors abort startup instead.

    Example:
        >>> app.add_middleware(ViteMiddleware, resolver=ModeResolver.from_config(config))
    """

    def __init__(
        self,
        app: ASGIApp,
        config: ViteConfig | None = None,
        resolver: ModeResolver | None = None,
        marker: str = HEAD_MARKER,
    ):
        super().__init__(app)
        if resolver is None:
            if config is None:
                raise ValueError("ViteMiddleware needs a config or a resolver")
            resolver = ModeResolver.from_config(config)
        self.resolver = resolver
        self.marker = marker

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        if not response.headers.get("content-type", "").startswith("text/html"):
            return response

        body = b""
        async for chunk in response.body_iterator:  # type: ignore[attr-defined]
            body += chunk if isinstance(chunk, bytes) else chunk.encode("utf-8")

        with LogContext(request_path=request.url.path, operation="inject_vite_tags"):
            try:
                fragment = html_fragment(self.resolver)
                content = insert_html(body, self.marker, str(fragment.tags))
            except ViteError as exc:
                logger.error("Failed to inject Vite tags: %s", log_error_details(exc))
                return PlainTextResponse("Internal server error", status_code=500)

        injected = Response(content=content, status_code=response.status_code, background=response.background)
        # Keep repeated headers such as set-cookie.
        injected.raw_headers = [
            (key, value) for key, value in response.raw_headers if key.lower() != b"content-length"
        ] + [(b"content-length", str(len(content)).encode("latin-1"))]
        return injected
