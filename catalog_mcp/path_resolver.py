"""Resolve configured repository paths into owner/repo/folder/file parts.

Catalog entries name their target loosely: ``owner/repo``, a full
``https://github.com/owner/repo`` URL, a ``/tree/<branch>/<folder>`` URL, or
a path ending in a file name. Everything downstream (folder guard, tools,
catalog URLs) works from the :class:`RepoPathDescriptor` produced here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional

from .config import DEFAULT_BRANCH, GITHUB_WEB_BASE
from .exceptions import InvalidPathError

_SCHEME_RE = re.compile(r"^https?://")
_FILE_EXTENSION_RE = re.compile(r"\.[A-Za-z0-9]+$")
_VALID_NAME_RE = re.compile(r"[A-Za-z0-9._-]+")


@dataclass(frozen=True)
class RepoPathDescriptor:
    owner: str
    repo: str
    folder: Optional[str] = None
    specific_file: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.specific_file is not None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"


def _strip_decorations(raw: str) -> str:
    clean = raw.strip().strip("/")
    clean = _SCHEME_RE.sub("", clean)
    if clean.startswith("github.com/"):
        clean = clean[len("github.com/"):]
    if clean.endswith(".git"):
        clean = clean[: -len(".git")]
    return clean


def _split_target(segments: list[str]) -> tuple[Optional[str], Optional[str]]:
    """Return ``(folder, specific_file)`` for the path after owner/repo."""

    segments = [s for s in segments if s]
    if not segments:
        return None, None

    full_path = "/".join(segments)
    if _FILE_EXTENSION_RE.search(full_path):
        folder = "/".join(segments[:-1]) if len(segments) > 1 else None
        return folder, full_path
    return full_path, None


def _validate_name(kind: str, value: str) -> None:
    if not _VALID_NAME_RE.fullmatch(value):
        raise InvalidPathError(
            f"Invalid {kind} name: {value}. Must contain only alphanumeric "
            "characters, dots, underscores, and hyphens.",
            value=value,
        )


def parse_repo_path(raw: object) -> RepoPathDescriptor:
    """Parse a catalog ``github_repo_path`` into a :class:`RepoPathDescriptor`."""

    if not isinstance(raw, str) or not raw.strip():
        raise InvalidPathError("GitHub repo path is required and must be a non-empty string")

    clean = _strip_decorations(raw)

    if "/tree/" in clean:
        tree_parts = clean.split("/tree/")
        if len(tree_parts) != 2:
            raise InvalidPathError(f"Invalid GitHub tree URL format: {raw}", value=raw)

        repo_part, branch_and_path = tree_parts
        repo_segments = repo_part.split("/")
        if len(repo_segments) < 2:
            raise InvalidPathError(f"Invalid repo path in tree URL: {raw}", value=raw)

        owner, repo = repo_segments[0], repo_segments[1]
        # The first segment after /tree/ is the branch name; it is discarded.
        folder, specific_file = _split_target(branch_and_path.split("/")[1:])
    else:
        segments = clean.split("/")
        if len(segments) < 2:
            raise InvalidPathError(
                f"Invalid repo path format: {raw}. Expected format: owner/repo or owner/repo/folder",
                value=raw,
            )
        owner, repo = segments[0], segments[1]
        folder, specific_file = _split_target(segments[2:])

    if not owner or not repo:
        raise InvalidPathError(
            f'Invalid repo path: owner and repo cannot be empty. Got owner="{owner}", repo="{repo}"',
            value=raw,
        )
    _validate_name("owner", owner)
    _validate_name("repo", repo)

    return RepoPathDescriptor(owner=owner, repo=repo, folder=folder, specific_file=specific_file)


def repo_web_url(descriptor: RepoPathDescriptor, branch: str = DEFAULT_BRANCH) -> str:
    """Return the browsable github.com URL for a resolved catalog target."""

    base = f"{GITHUB_WEB_BASE.rstrip('/')}/{descriptor.full_name}"
    if descriptor.specific_file:
        return f"{base}/blob/{branch}/{descriptor.specific_file}"
    if descriptor.folder:
        return f"{base}/tree/{branch}/{descriptor.folder}"
    return base


__all__ = ["RepoPathDescriptor", "parse_repo_path", "repo_web_url"]
