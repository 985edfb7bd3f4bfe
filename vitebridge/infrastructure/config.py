"""
Centralized configuration management for vitebridge.

Provides environment-driven configuration with validation and type safety
using pydantic-settings. Filesystem handles cannot come from the
environment; they are passed in code or derived from the configured
directories with :meth:`ViteConfig.with_filesystems`.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import PurePosixPath
from typing import Any, Literal, Optional

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from vitebridge.domain.scaffolding import Scaffolding
from vitebridge.infrastructure.filesystem import AssetFS, DirectoryFS

DEFAULT_VITE_URL = "http://localhost:5173"
DEFAULT_MANIFEST = ".vite/manifest.json"
DEFAULT_DEV_ENTRY = "src/main.tsx"


class ViteConfig(BaseSettings):
    """
    Configuration of the Vite integration.

    Example:
        >>> config = ViteConfig(fs=DirectoryFS("dist"), entry="src/main.tsx")
        >>> print(config.manifest)
        >>> # .vite/manifest.json

        >>> dev = ViteConfig(fs=DirectoryFS("."), is_dev=True, template="vue-ts")
        >>> print(dev.template.requires_preamble)
        >>> # False
    """

    # Filesystem to serve files from: the Vite output directory ("dist") in
    # production, the Vite project root in development.
    fs: Optional[AssetFS] = Field(None, exclude=True)
    # Development only. Defaults to the "public" directory of ``fs`` if present.
    public_fs: Optional[AssetFS] = Field(None, exclude=True)

    is_dev: bool = Field(False, description="Serve through the Vite dev server")
    entry: str = Field("", description="Source path of the entry point, e.g. src/main.tsx")
    url: str = Field(DEFAULT_VITE_URL, description="Vite dev server URL")
    manifest: str = Field(DEFAULT_MANIFEST, description="Manifest path relative to fs")
    template: Scaffolding = Field(Scaffolding.REACT, description="Scaffolding of the Vite project")
    assets_url_prefix: str = Field("", description="URL prefix of built assets")

    assets_dir: str = Field("dist", description="Directory backing fs when none is given")
    public_dir: str | None = Field(None, description="Directory backing public_fs when none is given")

    model_config = {
        "env_prefix": "VITE_",
        "case_sensitive": False,
        "arbitrary_types_allowed": True,
    }

    @field_validator("url", "assets_url_prefix")
    def strip_trailing_slash(cls, v):
        """Tags join paths with a single slash."""
        return v.rstrip("/") if v else v

    @field_validator("url")
    def default_url(cls, v):
        return v or DEFAULT_VITE_URL

    @field_validator("manifest")
    def validate_manifest_path(cls, v):
        """Manifest must live inside the asset filesystem."""
        if not v:
            return DEFAULT_MANIFEST
        if PurePosixPath(v).is_absolute() or ".." in PurePosixPath(v).parts:
            raise ValueError("manifest path must be relative to the asset filesystem")
        return v

    @field_validator("template", mode="before")
    def parse_template(cls, v):
        """Accept enum member names (``REACT_TS``) as well as values (``react-ts``)."""
        if isinstance(v, str) and v.upper().replace("-", "_") in Scaffolding.__members__:
            return Scaffolding[v.upper().replace("-", "_")]
        return v

    @property
    def dev_entry(self) -> str:
        return self.entry or DEFAULT_DEV_ENTRY

    def with_filesystems(self) -> ViteConfig:
        """Return a copy whose missing filesystems are built from the configured directories."""
        update: dict[str, Any] = {}
        if self.fs is None and self.assets_dir:
            update["fs"] = DirectoryFS(self.assets_dir)
        if self.public_fs is None and self.public_dir:
            update["public_fs"] = DirectoryFS(self.public_dir)
        return self.model_copy(update=update) if update else self


class LoggingConfig(BaseSettings):
    """
    Logging configuration settings.

    Example:
        >>> log_config = LoggingConfig(level="DEBUG", file_path="./logs/vite.log")
    """

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Minimum logging level"
    )
    file_path: str | None = Field(None, description="Log file path")
    structured: bool = Field(True, description="Use structured JSON logging")
    console_enabled: bool = Field(True, description="Enable console output")

    model_config = {"env_prefix": "LOG_", "case_sensitive": False}


class ServerConfig(BaseSettings):
    """Settings of the development runner (``scripts/run_server.py``)."""

    host: str = Field("127.0.0.1", description="Bind address")
    port: int = Field(8000, ge=1, le=65535, description="Bind port")
    reload: bool = Field(False, description="Reload on code changes")

    model_config = {"env_prefix": "SERVER_", "case_sensitive": False}


class ApplicationConfig(BaseSettings):
    """Application-wide settings."""

    environment: Literal["development", "testing", "production"] = Field(
        "development", description="Application environment"
    )
    debug: bool = Field(False, description="Enable debug mode")
    title: str = Field("Vite App", description="Default page title")
    version: str = Field("0.1.0", description="Application version")

    model_config = {"env_prefix": "APP_", "case_sensitive": False}

    @model_validator(mode="after")
    def debug_implies_development(self):
        """Ensure debug mode is only enabled in development."""
        if self.debug and self.environment == "production":
            raise ValueError("Debug mode cannot be enabled in production")
        return self


class Settings:
    """
    Complete settings container with lazily built sections.

    Example:
        >>> settings = get_settings()
        >>> print(settings.vite.is_dev)
        >>> print(settings.server.port)
    """

    def __init__(self):
        self._app: ApplicationConfig | None = None
        self._vite: ViteConfig | None = None
        self._logging: LoggingConfig | None = None
        self._server: ServerConfig | None = None

    @property
    def app(self) -> ApplicationConfig:
        if self._app is None:
            self._app = ApplicationConfig()
        return self._app

    @property
    def vite(self) -> ViteConfig:
        if self._vite is None:
            self._vite = ViteConfig()
        return self._vite

    @property
    def logging(self) -> LoggingConfig:
        if self._logging is None:
            level = "DEBUG" if self.app.debug else "INFO"
            if self.is_production():
                level = "WARNING"
            self._logging = LoggingConfig(level=level)
        return self._logging

    @property
    def server(self) -> ServerConfig:
        if self._server is None:
            self._server = ServerConfig()
        return self._server

    def is_production(self) -> bool:
        return self.app.environment == "production"

    def get_environment_info(self) -> dict[str, Any]:
        """Get summary of current environment configuration."""
        return {
            "environment": self.app.environment,
            "version": self.app.version,
            "debug": self.app.debug,
            "vite_mode": "development" if self.vite.is_dev else "production",
            "vite_template": self.vite.template.value,
            "logging_level": self.logging.level,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get application settings instance (cached).

    Returns:
        Settings instance with all configuration loaded
    """
    return Settings()


def reset_settings() -> None:
    """Reset settings cache to reload from environment."""
    get_settings.cache_clear()
