from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader, select_autoescape

from vitebridge.utils.urls import join_url

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"


def create_environment() -> Environment:
    """Jinja2 environment loading the bundled templates, with HTML autoescaping."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(default=True, default_for_string=True),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["urljoin"] = join_url
    return env
