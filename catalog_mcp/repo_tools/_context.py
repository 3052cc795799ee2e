"""Per-call state shared by the repository tool executors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Tuple
from urllib.parse import quote

from catalog_mcp.catalog import Catalog, GitHubCredentials
from catalog_mcp.config import ServerSettings
from catalog_mcp.exceptions import UsageError
from catalog_mcp.folder_guard import enforce_folder_security, ensure_path_in_folder
from catalog_mcp.http_clients import GitHubClient

PathPolicy = Callable[[str, Optional[str]], str]


@dataclass(frozen=True)
class ToolContext:
    """Everything an executor needs; built by the dispatcher for one call.

    ``credentials`` and ``client`` are ``None`` for tools that only read the
    catalog.
    """

    settings: ServerSettings
    catalog: Catalog
    config_name: Optional[str] = None
    credentials: Optional[GitHubCredentials] = None
    client: Optional[GitHubClient] = None

    @property
    def folder(self) -> Optional[str]:
        return self.credentials.folder if self.credentials else None

    @property
    def full_name(self) -> str:
        return self.credentials.full_name if self.credentials else ""

    def require_repo(self) -> Tuple[GitHubCredentials, GitHubClient]:
        if self.credentials is None or self.client is None:
            raise UsageError("This tool requires a repository configuration")
        return self.credentials, self.client

    def resolve_file_target(
        self, file_path: Optional[str], policy: PathPolicy
    ) -> Tuple[str, bool]:
        """Return ``(path, auto_detected)`` for a file-level operation.

        A file-designating entry always wins over the caller's path.
        """

        credentials, _ = self.require_repo()
        if credentials.is_file and credentials.specific_file:
            return credentials.specific_file, True
        if file_path and file_path.strip():
            return policy(file_path, credentials.folder), False
        raise UsageError(
            f'No file specified. Config "{self.config_name}" points to a folder, '
            "please specify file_path parameter."
        )

    def contents_path(self, path: str = "") -> str:
        base = f"/repos/{self.full_name}/contents"
        path = path.strip("/")
        if not path:
            return base
        return f"{base}/{quote(path, safe='/')}"


def reject_outside_folder(path: str, folder: Optional[str]) -> str:
    return enforce_folder_security(path, folder).strip("/")


def reroot_into_folder(path: str, folder: Optional[str]) -> str:
    return ensure_path_in_folder(path, folder).strip("/")


__all__ = [
    "ToolContext",
    "reject_outside_folder",
    "reroot_into_folder",
]
