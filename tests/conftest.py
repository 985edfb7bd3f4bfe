from __future__ import annotations

import pytest

from tests.manifests import EXAMPLE_MANIFEST, SINGLE_ENTRY_MANIFEST
from vitebridge.infrastructure.config import reset_settings
from vitebridge.infrastructure.filesystem import MemoryFS
from vitebridge.infrastructure.logging import setup_logging

setup_logging(level="WARNING", structured=False, enable_console=False)


@pytest.fixture(autouse=True)
def _fresh_settings():
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def example_fs() -> MemoryFS:
    return MemoryFS({".vite/manifest.json": EXAMPLE_MANIFEST})


@pytest.fixture
def dist_fs() -> MemoryFS:
    return MemoryFS(
        {
            ".vite/manifest.json": SINGLE_ENTRY_MANIFEST,
            "assets/main-4f2a.js": "console.log('main')",
            "assets/main-9c1d.css": "body { margin: 0 }",
            "assets/vendor-77aa.js": "export const vendor = 1",
            "robots.txt": "User-agent: *",
        }
    )
