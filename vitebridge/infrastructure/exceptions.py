"""
Custom exception classes for the Vite integration.

Provides structured error handling with operator-friendly messages and
error categorization for construction-time and per-request failures.
"""

from __future__ import annotations

from typing import Any


class ViteError(Exception):
    """Base exception for all vitebridge errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        user_message: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.user_message = user_message or self._get_default_user_message()

    def _get_default_user_message(self) -> str:
        """Provide a user-friendly version of the error message."""
        return "An unexpected error occurred while preparing frontend assets."

    def __str__(self) -> str:
        return f"{self.__class__.__name__}: {self.message}"


class ConfigurationError(ViteError):
    """Raised when the integration is configured incompletely."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.config_key = config_key
        super().__init__(
            message=f"vite: {message}",
            details=details or {"config_key": config_key},
            user_message="Configuration error. Please check your Vite settings.",
        )


class ManifestError(ViteError):
    """Base class for manifest loading failures."""

    def __init__(self, message: str, path: str | None = None, details: dict[str, Any] | None = None):
        self.path = path
        super().__init__(
            message=message,
            details=details or {"path": path},
            user_message="The frontend build manifest could not be loaded. Run the Vite build first.",
        )


class ManifestOpenError(ManifestError):
    """Raised when the manifest file cannot be opened."""

    def __init__(self, path: str, reason: str):
        super().__init__(message=f"vite: open manifest: {reason}", path=path)


class ManifestParseError(ManifestError):
    """Raised when manifest content is not a valid Vite manifest."""

    def __init__(self, reason: str, path: str | None = None):
        super().__init__(message=f"vite: parse manifest: {reason}", path=path)


class ChunkNotFoundError(ViteError):
    """Raised when no entry chunk matches the requested entry point."""

    def __init__(self, entry: str):
        self.entry = entry
        super().__init__(
            message=f"vite: unable to find chunk for entry point {entry!r}",
            details={"entry": entry},
        )

    def _get_default_user_message(self) -> str:
        return f"Entry point {self.entry!r} is not part of the frontend build."


class RenderError(ViteError):
    """Raised when a page template fails to render."""

    def __init__(self, template: str, reason: str):
        self.template = template
        super().__init__(
            message=f"vite: execute template {template!r}: {reason}",
            details={"template": template},
            user_message="Internal server error",
        )


class TemplateRegistrationError(ViteError):
    """Raised when a template registration breaks the handler contract."""

    def __init__(self, message: str, name: str | None = None):
        self.name = name
        super().__init__(message=message, details={"template": name})


class DuplicateTemplateError(TemplateRegistrationError):
    """Raised when a template name is registered twice."""

    def __init__(self, name: str):
        super().__init__(message=f"vite: template {name!r} already registered", name=name)


class HandlerFrozenError(TemplateRegistrationError):
    """Raised when the handler is reconfigured after it started serving."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(message=f"vite: cannot {operation} after the handler started serving")


class TemplateMarkerNotFoundError(ViteError):
    """Raised when the injection marker is missing from an HTML response."""

    def __init__(self, marker: str):
        self.marker = marker
        super().__init__(
            message=f"vite: template marker not found: {marker!r}",
            details={"marker": marker},
            user_message="Internal server error",
        )


def log_error_details(error: Exception, context: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create structured error details for logging.

    Args:
        error: The exception to log
        context: Additional context information

    Returns:
        Dictionary with structured error details

    Example:
        >>> error = ChunkNotFoundError("src/admin.tsx")
        >>> details = log_error_details(error, {"path": "/admin"})
        >>> print(details["error_type"])  # "ChunkNotFoundError"
    """
    details = {
        "error_type": type(error).__name__,
        "error_message": str(error),
        "context": context or {},
    }

    if isinstance(error, ViteError):
        details.update({"user_message": error.user_message, "error_details": error.details})

    return details
