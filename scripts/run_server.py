from __future__ import annotations

import sys

import uvicorn

from vitebridge.infrastructure.config import get_settings
from vitebridge.infrastructure.exceptions import ViteError
from vitebridge.infrastructure.logging import get_logger
from vitebridge.web.main import configure_logging, create_application

logger = get_logger("run_server")


def check_frontend() -> None:
    """Fail fast when the handler cannot be built, before uvicorn starts workers."""
    create_application()


def main() -> None:
    settings = get_settings()
    configure_logging(settings)

    try:
        check_frontend()
    except ViteError as exc:
        logger.error(f"Cannot serve the frontend: {exc.message}")
        print(f"[run-server] {exc.user_message}", file=sys.stderr)
        raise SystemExit(1) from exc

    uvicorn.run(
        "vitebridge.web.main:application_factory",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.server.reload,
    )


if __name__ == "__main__":
    main()
