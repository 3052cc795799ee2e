"""Feature-branch allocation for the add/update pull request workflow."""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from .config import DEFAULT_BRANCH_ATTEMPTS, TOOLS_LOGGER
from .exceptions import BranchAllocationError, RemoteAPIError
from .http_clients import GitHubClient

# Module-level so tests can monkeypatch ``choice``.
random = secrets.SystemRandom()

_SUFFIX_ALPHABET = string.ascii_lowercase + string.digits
_SLUG_RE = re.compile(r"[^a-z0-9]")

BranchNameFactory = Callable[[str, int], str]


@dataclass(frozen=True)
class BranchAllocation:
    name: str
    base_sha: str
    attempts: int


def generate_branch_name(
    base_name: str, attempt: int = 0, *, now: Optional[datetime] = None
) -> str:
    """Return ``update-config-<slug>-<YYYYMMDDTHHMM>-<suffix>[-<attempt>]``."""

    now = now or datetime.now(timezone.utc)
    slug = _SLUG_RE.sub("-", base_name.lower())
    suffix = "".join(random.choice(_SUFFIX_ALPHABET) for _ in range(6))
    name = f"update-config-{slug}-{now.strftime('%Y%m%dT%H%M')}-{suffix}"
    if attempt > 0:
        name = f"{name}-{attempt}"
    return name


def _is_branch_collision(exc: RemoteAPIError) -> bool:
    return exc.status_code == 422 and "reference already exists" in str(exc).lower()


async def _create_ref(client: GitHubClient, full_name: str, name: str, base_sha: str) -> None:
    await client.post(
        f"/repos/{full_name}/git/refs",
        {"ref": f"refs/heads/{name}", "sha": base_sha},
    )


async def allocate_branch(
    client: GitHubClient,
    *,
    full_name: str,
    base_name: str,
    base_sha: str,
    max_attempts: int = DEFAULT_BRANCH_ATTEMPTS,
    name_factory: BranchNameFactory = generate_branch_name,
) -> BranchAllocation:
    """Create a fresh branch at ``base_sha``, retrying on name collisions.

    Names are generated speculatively and GitHub's 422 "Reference already
    exists" response is the collision signal. On the last attempt the
    colliding ref is deleted and created once more. Any other error is
    raised unchanged.
    """

    last_error: Optional[RemoteAPIError] = None
    for attempt in range(max_attempts):
        name = name_factory(base_name, attempt)
        try:
            await _create_ref(client, full_name, name, base_sha)
        except RemoteAPIError as exc:
            if not _is_branch_collision(exc):
                raise
            last_error = exc
            TOOLS_LOGGER.warning("Branch %s already exists, trying with new name", name)
        else:
            TOOLS_LOGGER.info("Created branch %s on %s", name, full_name)
            return BranchAllocation(name=name, base_sha=base_sha, attempts=attempt + 1)

        if attempt < max_attempts - 1:
            continue

        try:
            await client.delete(f"/repos/{full_name}/git/refs/heads/{name}")
        except RemoteAPIError as exc:
            if not exc.is_not_found:
                TOOLS_LOGGER.warning("Failed to delete existing branch %s: %s", name, exc)
                raise BranchAllocationError(max_attempts, last_error) from exc
        else:
            TOOLS_LOGGER.info("Deleted existing branch %s", name)

        try:
            await _create_ref(client, full_name, name, base_sha)
        except RemoteAPIError as exc:
            raise BranchAllocationError(max_attempts, exc) from exc
        TOOLS_LOGGER.info("Created branch %s after cleanup", name)
        return BranchAllocation(name=name, base_sha=base_sha, attempts=attempt + 1)

    raise BranchAllocationError(max_attempts, last_error)


__all__ = [
    "BranchAllocation",
    "allocate_branch",
    "generate_branch_name",
]
