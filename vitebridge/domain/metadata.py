"""
Page metadata rendered into the ``<head>`` of served pages.

The models mirror the metadata fields commonly emitted by SSR frameworks
(title, description, Open Graph, Twitter card, robots, icons, ...). Values
are escaped when rendered; only the resulting markup is trusted.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from markupsafe import Markup
from pydantic import BaseModel, Field

from vitebridge.infrastructure.templating import create_environment

_environment = create_environment()


class TitleTemplate(BaseModel):
    """Title rules: ``absolute`` wins, then ``template`` (``%s`` is the page title), then ``default``."""

    template: str = ""
    default: str = ""
    absolute: str = ""


class Author(BaseModel):
    name: str = ""
    url: str = ""


class FormatDetection(BaseModel):
    """Set a flag to disable the browser's automatic detection of that format."""

    email: bool = False
    address: bool = False
    telephone: bool = False


class OpenGraphImage(BaseModel):
    url: str
    width: int = 0
    height: int = 0
    alt: str = ""


class OpenGraph(BaseModel):
    title: str = ""
    description: str = ""
    url: str = ""
    site_name: str = ""
    images: list[OpenGraphImage] = Field(default_factory=list)
    locale: str = ""
    type: str = ""
    published_time: Optional[datetime] = None
    authors: list[str] = Field(default_factory=list)


class TwitterAppID(BaseModel):
    iphone: str = ""
    ipad: str = ""
    googleplay: str = ""


class TwitterAppURL(BaseModel):
    iphone: str = ""
    ipad: str = ""


class TwitterApp(BaseModel):
    name: str = ""
    id: Optional[TwitterAppID] = None
    url: Optional[TwitterAppURL] = None


class Twitter(BaseModel):
    card: str = ""  # e.g. "summary_large_image"
    title: str = ""
    description: str = ""
    site_id: str = ""
    creator: str = ""
    creator_id: str = ""
    images: list[str] = Field(default_factory=list)
    app: Optional[TwitterApp] = None


class GoogleBot(BaseModel):
    index: bool = False
    follow: bool = False
    no_image_index: bool = False
    max_video_preview: int = -1
    max_image_preview: str = ""  # e.g. "large"
    max_snippet: int = -1


class Robots(BaseModel):
    index: bool = False
    follow: bool = False
    no_cache: bool = False
    googlebot: Optional[GoogleBot] = None


class Icon(BaseModel):
    url: str
    media: str = ""
    type: str = ""


class AppleIcon(BaseModel):
    url: str
    sizes: list[str] = Field(default_factory=list)
    type: str = ""


class OtherIcon(BaseModel):
    rel: str
    url: str


class Icons(BaseModel):
    icon: list[Icon] = Field(default_factory=list)
    shortcut: list[str] = Field(default_factory=list)
    apple: list[AppleIcon] = Field(default_factory=list)
    other: list[OtherIcon] = Field(default_factory=list)


class ThemeColor(BaseModel):
    color: str
    media: str = ""


class Viewport(BaseModel):
    theme_color: list[ThemeColor] = Field(default_factory=list)
    width: str = ""
    initial_scale: float = 0
    maximum_scale: float = 0
    user_scalable: Optional[bool] = None
    color_scheme: str = ""

    def content(self) -> str:
        """Value of the ``viewport`` meta tag, or ``""`` without a width."""
        if not self.width:
            return ""
        parts = [f"width={self.width}"]
        if self.initial_scale > 0:
            parts.append(f"initial-scale={self.initial_scale:g}")
        if self.maximum_scale > 0:
            parts.append(f"maximum-scale={self.maximum_scale:g}")
        if self.user_scalable is not None:
            parts.append(f"user-scalable={'yes' if self.user_scalable else 'no'}")
        if self.color_scheme:
            parts.append(f"color-scheme={self.color_scheme}")
        return ",".join(parts)


class Metadata(BaseModel):
    """
    Metadata of a page.

    Example:
        >>> md = Metadata(title="Dashboard", description="Team overview")
        >>> print(md.render())
        <title>Dashboard</title>
        <meta name="description" content="Team overview" />
    """

    title: str = ""
    title_template: Optional[TitleTemplate] = None
    description: str = ""

    generator: str = ""
    application_name: str = ""
    referrer: str = ""
    keywords: list[str] = Field(default_factory=list)
    authors: list[Author] = Field(default_factory=list)
    creator: str = ""
    publisher: str = ""
    format_detection: Optional[FormatDetection] = None

    canonical: str = ""
    languages: dict[str, str] = Field(default_factory=dict)  # "en-US": "/en-US"

    open_graph: Optional[OpenGraph] = None
    twitter: Optional[Twitter] = None
    robots: Optional[Robots] = None
    icons: Optional[Icons] = None
    viewport: Optional[Viewport] = None

    manifest: str = ""
    other: dict[str, str] = Field(default_factory=dict)

    def resolved_title(self) -> str:
        rules = self.title_template
        if rules is None:
            return self.title
        if rules.absolute:
            return rules.absolute
        if rules.template:
            return rules.template.replace("%s", self.title)
        return rules.default or self.title

    def render(self) -> Markup:
        """Render the metadata as ``<head>`` tags, one per line."""
        template = _environment.get_template("metadata.html")
        return Markup(template.render(md=self, title=self.resolved_title()))
