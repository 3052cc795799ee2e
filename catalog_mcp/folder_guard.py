"""Keep tool paths inside a configuration's folder restriction.

Two policies exist. ``enforce_folder_security`` rejects anything outside the
folder and is used where callers name an existing, fully qualified path.
``ensure_path_in_folder`` re-roots a relative path under the folder and is
used where callers are placing a file.
"""

from __future__ import annotations

from typing import Optional

from .exceptions import AccessDeniedError


def normalize_repo_path(path: Optional[str]) -> str:
    return (path or "").strip().strip("/")


def _climbs_out(normalized_path: str) -> bool:
    return ".." in normalized_path.split("/")


def is_within_folder(path: str, folder: str) -> bool:
    normalized_path = normalize_repo_path(path)
    normalized_folder = normalize_repo_path(folder)
    return normalized_path == normalized_folder or normalized_path.startswith(
        normalized_folder + "/"
    )


def enforce_folder_security(path: str, folder: Optional[str]) -> str:
    """Return ``path`` normalized, or raise when it leaves ``folder``."""

    if not folder:
        return path

    normalized_path = normalize_repo_path(path)
    normalized_folder = normalize_repo_path(folder)
    if _climbs_out(normalized_path) or not is_within_folder(normalized_path, normalized_folder):
        raise AccessDeniedError(path, folder)
    return normalized_path


def ensure_path_in_folder(path: str, folder: Optional[str]) -> str:
    """Return ``path`` re-rooted under ``folder`` when it is not already inside."""

    if not folder:
        return path

    normalized_path = normalize_repo_path(path)
    normalized_folder = normalize_repo_path(folder)
    if _climbs_out(normalized_path):
        raise AccessDeniedError(path, folder)
    if not normalized_path:
        return normalized_folder
    if is_within_folder(normalized_path, normalized_folder):
        return normalized_path
    return f"{normalized_folder}/{normalized_path}"


__all__ = [
    "enforce_folder_security",
    "ensure_path_in_folder",
    "is_within_folder",
    "normalize_repo_path",
]
