"""Custom exception types used across the catalog MCP server."""

from __future__ import annotations

from typing import Iterable, Optional


class CatalogMCPError(Exception):
    """Base class for every error this package raises on purpose."""

    pass


class UsageError(CatalogMCPError):
    """Raised when a tool cannot proceed due to misconfiguration or bad inputs.

    This is intended to surface a clear, single-line message to the caller.
    """

    pass


class InvalidPathError(CatalogMCPError):
    """A configured repository path could not be resolved to owner/repo."""

    def __init__(self, message: str, *, value: Optional[str] = None) -> None:
        super().__init__(message)
        self.value = value


class AccessDeniedError(CatalogMCPError):
    """A file path escapes the folder restriction of its configuration."""

    def __init__(self, path: str, folder: str) -> None:
        super().__init__(
            f'Access denied: Path "{path}" is outside the allowed folder "{folder}"'
        )
        self.path = path
        self.folder = folder


class ConfigurationNotFoundError(CatalogMCPError):
    def __init__(
        self,
        config_name: str,
        available: Iterable[str] = (),
        *,
        reason: Optional[str] = None,
    ) -> None:
        self.config_name = config_name
        self.available = list(available)
        message = reason or f"Configuration not found: {config_name}"
        if self.available:
            message = f"{message}. Available configs: {', '.join(self.available)}"
        super().__init__(message)


class RemoteAPIError(CatalogMCPError):
    """Non-2xx response (or transport failure) from the GitHub REST API.

    ``status_code`` is ``None`` when no response was received at all.
    """

    def __init__(
        self,
        status_code: Optional[int],
        reason: str = "",
        body: str = "",
        *,
        message: Optional[str] = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.body = body
        if message is None:
            message = f"GitHub API error: {status_code} {reason} - {body}"
        super().__init__(message)

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class GitHubAuthError(RemoteAPIError):
    pass


class GitHubRateLimitError(RemoteAPIError):
    """Raised when GitHub responds with a rate limit error."""

    pass


class BranchAllocationError(CatalogMCPError):
    def __init__(self, attempts: int, last_error: Optional[BaseException] = None) -> None:
        message = f"Failed to create branch after {attempts} attempts"
        if last_error is not None:
            message = f"{message}. Last error: {last_error}"
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


class ToolExecutionError(CatalogMCPError):
    """A write tool failed part-way; carries the resolved target for reporting."""

    def __init__(
        self,
        operation: str,
        cause: BaseException,
        *,
        path: Optional[str] = None,
        folder: Optional[str] = None,
    ) -> None:
        parts = [f"Failed to {operation}"]
        if path:
            parts.append(f": {path}")
        if folder:
            parts.append(f" (folder restriction: {folder})")
        parts.append(f" - {cause}")
        super().__init__("".join(parts))
        self.operation = operation
        self.cause = cause
        self.path = path
        self.folder = folder

    @property
    def status_code(self) -> Optional[int]:
        return getattr(self.cause, "status_code", None)


class ToolNotFoundError(CatalogMCPError):
    def __init__(self, tool_name: object) -> None:
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


__all__ = [
    "AccessDeniedError",
    "BranchAllocationError",
    "CatalogMCPError",
    "ConfigurationNotFoundError",
    "GitHubAuthError",
    "GitHubRateLimitError",
    "InvalidPathError",
    "RemoteAPIError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "UsageError",
]
