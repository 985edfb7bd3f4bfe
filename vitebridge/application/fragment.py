"""
HTML fragments for embedding Vite assets into templates owned by the caller.

:func:`html_fragment` returns the tags to place in a page's ``<head>``:

* development: the framework preamble (if any), ``@vite/client`` and the
  entry module, all served by the Vite dev server;
* production: stylesheets, the entry module and module preloads resolved
  from the build manifest.
"""

from __future__ import annotations

from dataclasses import dataclass, fields

from jinja2 import Environment
from markupsafe import Markup

from vitebridge.application.resolver import ModeResolver, PageData
from vitebridge.infrastructure.config import ViteConfig
from vitebridge.infrastructure.exceptions import ViteError, log_error_details
from vitebridge.infrastructure.logging import get_logger
from vitebridge.infrastructure.templating import create_environment

logger = get_logger(__name__)

FRAGMENT_TEMPLATE = "fragment.html"
FRAGMENT_ERROR = Markup("<!-- Vite fragment error -->")

_environment = create_environment()


@dataclass(frozen=True)
class Fragment:
    """Asset tags ready to be embedded without escaping."""

    tags: Markup

    def __html__(self) -> str:
        return str(self.tags)

    def __str__(self) -> str:
        return str(self.tags)


def page_context(page: PageData) -> dict[str, object]:
    """Template variables for ``page``."""
    return {field.name: getattr(page, field.name) for field in fields(page)}


def render_fragment(page: PageData) -> Fragment:
    template = _environment.get_template(FRAGMENT_TEMPLATE)
    return Fragment(tags=Markup(template.render(page_context(page))))


def html_fragment(config: ViteConfig | ModeResolver) -> Fragment:
    """
    Generate the Vite tags for ``config``.

    A :class:`ModeResolver` can be passed instead of a config to avoid
    reloading the manifest on every call.

    Raises:
        ConfigurationError: If no filesystem is configured
        ManifestOpenError: If the manifest cannot be opened (production)
        ManifestParseError: If the manifest is malformed (production)
        ChunkNotFoundError: If the entry is not in the manifest (production)

    Example:
        >>> fragment = html_fragment(ViteConfig(fs=DirectoryFS("dist"), entry="src/main.tsx"))
        >>> templates.TemplateResponse("index.html", {"request": request, "vite": fragment})
    """
    resolver = config if isinstance(config, ModeResolver) else ModeResolver.from_config(config)
    return render_fragment(resolver.page_data())


def install_template_helpers(env: Environment, config: ViteConfig | ModeResolver, name: str = "vite_tags") -> None:
    """
    Register a ``{{ vite_tags() }}`` global on a Jinja2 environment.

    The resolver is built immediately, so configuration and manifest errors
    surface here. Resolution errors at render time are logged and replaced
    by an HTML comment so the rest of the page still renders.

    Example:
        >>> templates = Jinja2Templates(directory="templates")
        >>> install_template_helpers(templates.env, settings.vite.with_filesystems())
    """
    resolver = config if isinstance(config, ModeResolver) else ModeResolver.from_config(config)

    def vite_tags() -> Markup:
        try:
            return html_fragment(resolver).tags
        except ViteError as exc:
            logger.error("Vite fragment error: %s", log_error_details(exc, {"helper": name}))
            return FRAGMENT_ERROR

    env.globals[name] = vite_tags
