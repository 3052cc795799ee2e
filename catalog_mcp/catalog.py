"""Configuration catalog: named repository targets plus their credentials."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional

from .config import BASE_LOGGER, ServerSettings
from .exceptions import ConfigurationNotFoundError, UsageError
from .path_resolver import RepoPathDescriptor, parse_repo_path
from .presets import PRESET_CATALOGS

_REQUIRED_KEYS = ("name", "github_repo_path")


@dataclass(frozen=True)
class ConfigurationEntry:
    name: str
    description: str
    github_repo_path: str
    github_token: str = field(default="", repr=False)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "ConfigurationEntry":
        if not isinstance(raw, Mapping):
            raise UsageError(f"Catalog entries must be objects, got {type(raw).__name__}")
        missing = [key for key in _REQUIRED_KEYS if not str(raw.get(key) or "").strip()]
        if missing:
            raise UsageError(
                f"Catalog entry {raw.get('name')!r} is missing required keys: {', '.join(missing)}"
            )
        return cls(
            name=str(raw["name"]).strip(),
            description=str(raw.get("description") or ""),
            github_repo_path=str(raw["github_repo_path"]),
            github_token=str(raw.get("github_token") or "").strip(),
        )

    def descriptor(self) -> RepoPathDescriptor:
        return parse_repo_path(self.github_repo_path)


@dataclass(frozen=True)
class GitHubCredentials:
    """Token plus resolved target of one catalog entry, built per tool call."""

    token: str = field(repr=False)
    owner: str
    repo: str
    folder: Optional[str] = None
    specific_file: Optional[str] = None
    description: Optional[str] = None

    @property
    def is_file(self) -> bool:
        return self.specific_file is not None

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    @classmethod
    def from_entry(cls, entry: ConfigurationEntry, token: str) -> "GitHubCredentials":
        descriptor = entry.descriptor()
        return cls(
            token=token,
            owner=descriptor.owner,
            repo=descriptor.repo,
            folder=descriptor.folder,
            specific_file=descriptor.specific_file,
            description=entry.description or None,
        )


class Catalog:
    """Read-only, ordered collection of :class:`ConfigurationEntry` objects."""

    def __init__(
        self,
        entries: Iterable[ConfigurationEntry],
        *,
        default_token: Optional[str] = None,
    ) -> None:
        self._entries: Dict[str, ConfigurationEntry] = {}
        for entry in entries:
            if entry.name in self._entries:
                raise UsageError(f"Duplicate catalog entry name: {entry.name}")
            self._entries[entry.name] = entry
        self._default_token = (default_token or "").strip()

    def __iter__(self) -> Iterator[ConfigurationEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def names(self) -> List[str]:
        return list(self._entries)

    def find(self, name: str) -> Optional[ConfigurationEntry]:
        return self._entries.get(name)

    def get(self, name: str) -> ConfigurationEntry:
        entry = self._entries.get(name)
        if entry is None:
            raise ConfigurationNotFoundError(name, self.names)
        return entry

    def token_for(self, entry: ConfigurationEntry) -> str:
        token = entry.github_token or self._default_token
        if not token:
            BASE_LOGGER.error("GitHub token not found for config: %s", entry.name)
            raise ConfigurationNotFoundError(
                entry.name,
                reason=(
                    f"GitHub token not configured for {entry.name}; "
                    "set github_token on the entry or the GITHUB_TOKEN environment variable"
                ),
            )
        return token

    def credentials_for(self, name: str) -> GitHubCredentials:
        entry = self.get(name)
        return GitHubCredentials.from_entry(entry, self.token_for(entry))


def _entries_from_json(path: Path) -> List[Mapping[str, Any]]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise UsageError(f"Catalog file not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise UsageError(f"Catalog file {path} is not valid JSON: {exc}") from exc

    if isinstance(data, Mapping):
        data = data.get("catalog")
    if not isinstance(data, list):
        raise UsageError(f"Catalog file {path} must hold a list of entries or a 'catalog' list")
    return data


def load_catalog(source: str, *, default_token: Optional[str] = None) -> Catalog:
    """Load a preset catalog by name, or a JSON catalog file by path."""

    if source in PRESET_CATALOGS:
        raw_entries: List[Mapping[str, Any]] = list(PRESET_CATALOGS[source])
    else:
        raw_entries = _entries_from_json(Path(source))
    return Catalog(
        (ConfigurationEntry.from_mapping(raw) for raw in raw_entries),
        default_token=default_token,
    )


def build_catalog(settings: ServerSettings) -> Catalog:
    """Return the catalog implied by ``settings`` (one entry in single-repo mode)."""

    if settings.is_single_repo:
        entry = ConfigurationEntry(
            name=settings.single_config_name,
            description=f"Repository {settings.single_repo_path}",
            github_repo_path=settings.single_repo_path or "",
        )
        return Catalog([entry], default_token=settings.github_token)
    return load_catalog(settings.catalog_source, default_token=settings.github_token)


__all__ = [
    "Catalog",
    "ConfigurationEntry",
    "GitHubCredentials",
    "build_catalog",
    "load_catalog",
]
