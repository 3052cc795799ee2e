"""Configuration and logging helpers for the catalog MCP server."""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Mapping, Optional

from .exceptions import UsageError

# Custom log levels
# ------------------------------------------------------------------------------
#
# CHAT: user-facing progress messages ("Step 2: reading default branch").
# DETAILED: tool parameters and API payload summaries, noisier than INFO but
# quieter than DEBUG.

DETAILED_LEVEL = 15
CHAT_LEVEL = 25


def _install_custom_log_levels() -> None:
    if not hasattr(logging, "DETAILED"):
        logging.addLevelName(DETAILED_LEVEL, "DETAILED")
        setattr(logging, "DETAILED", DETAILED_LEVEL)

    if not hasattr(logging, "CHAT"):
        logging.addLevelName(CHAT_LEVEL, "CHAT")
        setattr(logging, "CHAT", CHAT_LEVEL)

    if not hasattr(logging.Logger, "detailed"):
        def detailed(self: logging.Logger, msg, *args, **kwargs):
            if self.isEnabledFor(DETAILED_LEVEL):
                self._log(DETAILED_LEVEL, msg, args, **kwargs)
        logging.Logger.detailed = detailed  # type: ignore[attr-defined]

    if not hasattr(logging.Logger, "chat"):
        def chat(self: logging.Logger, msg, *args, **kwargs):
            if self.isEnabledFor(CHAT_LEVEL):
                self._log(CHAT_LEVEL, msg, args, **kwargs)
        logging.Logger.chat = chat  # type: ignore[attr-defined]


def _resolve_log_level(level_name: str | None) -> int:
    if not level_name:
        return logging.INFO

    name = str(level_name).strip().upper()
    if not name:
        return logging.INFO

    if name.lstrip("-").isdigit():
        return int(name)

    if name == "DETAILED":
        return DETAILED_LEVEL
    if name == "CHAT":
        return CHAT_LEVEL

    return getattr(logging, name, logging.INFO)


_install_custom_log_levels()

# Process-level constants
# ------------------------------------------------------------------------------

GITHUB_API_BASE = os.environ.get("GITHUB_API_BASE", "https://api.github.com")
GITHUB_WEB_BASE = os.environ.get("GITHUB_WEB_BASE", "https://github.com")
GITHUB_ACCEPT_HEADER = "application/vnd.github.v3+json"
GITHUB_USER_AGENT = "MCP-GitHub-Tool/1.0"

HTTPX_TIMEOUT = float(os.environ.get("HTTPX_TIMEOUT", 30))
HTTPX_MAX_CONNECTIONS = int(os.environ.get("HTTPX_MAX_CONNECTIONS", 50))
HTTPX_MAX_KEEPALIVE = int(os.environ.get("HTTPX_MAX_KEEPALIVE", 20))

DEFAULT_PORT = 3008
DEFAULT_BRANCH = "main"
DEFAULT_BRANCH_ATTEMPTS = 3

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
LOG_STYLE = os.environ.get("LOG_STYLE", "color").lower()
LOG_FORMAT = os.environ.get(
    "LOG_FORMAT",
    "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)


class _ColorFormatter(logging.Formatter):
    """Level-colored formatter for stdout logs."""

    _C = {
        "DEBUG": "\x1b[36m",  # cyan
        "DETAILED": "\x1b[36m",  # cyan
        "INFO": "\x1b[32m",  # green
        "CHAT": "\x1b[34m",  # blue
        "WARNING": "\x1b[33m",  # yellow
        "ERROR": "\x1b[31m",  # red
        "CRITICAL": "\x1b[35m",  # magenta
        "RESET": "\x1b[0m",
    }

    def __init__(self, fmt: str, *, use_color: bool) -> None:
        super().__init__(fmt)
        self._use_color = bool(use_color)

    def format(self, record: logging.LogRecord) -> str:  # pragma: no cover - formatting
        levelname = record.levelname
        if self._use_color and levelname in self._C:
            record.levelname = f"{self._C[levelname]}{levelname}{self._C['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _configure_logging() -> None:
    # Avoid reconfiguring during module reloads.
    root = logging.getLogger()
    if getattr(root, "_catalog_mcp_configured", False):
        return

    use_color = LOG_STYLE in {"color", "ansi", "colored"}

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(_ColorFormatter(LOG_FORMAT, use_color=use_color))

    logging.basicConfig(
        level=_resolve_log_level(LOG_LEVEL),
        handlers=[console_handler],
        force=True,
    )

    for noisy in ("uvicorn.access", "httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    setattr(root, "_catalog_mcp_configured", True)


_configure_logging()

BASE_LOGGER = logging.getLogger("catalog_mcp")
GITHUB_LOGGER = logging.getLogger("catalog_mcp.github_client")
TOOLS_LOGGER = logging.getLogger("catalog_mcp.tools")

SERVER_START_TIME = time.time()


# Server settings
# ------------------------------------------------------------------------------

MODE_CATALOG = "catalog"
MODE_SINGLE = "single"

_MODE_DEFAULTS = {
    MODE_CATALOG: {
        "tool_prefix": "global_docs",
        "server_name": "global-docs-mcp",
        "description": "MCP server for managing global documentation in remote repositories",
    },
    MODE_SINGLE: {
        "tool_prefix": "config",
        "server_name": "global-config-mcp",
        "description": "MCP server for managing configuration files in a GitHub repository",
    },
}


@dataclass(frozen=True)
class ServerSettings:
    """Startup configuration threaded from the ASGI app down to the tools.

    Built once (normally by :func:`load_settings`) and never mutated. Tool
    executors read the default branch and retry budget from here instead of
    consulting the environment.
    """

    server_token: Optional[str] = None
    github_token: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    mode: str = MODE_CATALOG
    catalog_source: str = "docs"
    tool_prefix: str = ""
    server_name: str = ""
    server_description: str = ""
    single_repo_path: Optional[str] = None
    single_config_name: str = "default"
    default_branch: str = DEFAULT_BRANCH
    branch_attempts: int = DEFAULT_BRANCH_ATTEMPTS

    def __post_init__(self) -> None:
        if self.mode not in _MODE_DEFAULTS:
            raise UsageError(
                f"Unsupported MCP_MODE {self.mode!r}; expected one of: "
                + ", ".join(sorted(_MODE_DEFAULTS))
            )
        if self.branch_attempts < 1:
            raise UsageError("BRANCH_CREATE_MAX_ATTEMPTS must be at least 1")
        if self.mode == MODE_SINGLE and not self.single_repo_path:
            raise UsageError(
                "Single-repository mode requires GITHUB_REPO_PATH or GITHUB_OWNER and GITHUB_REPO"
            )

        defaults = _MODE_DEFAULTS[self.mode]
        # Frozen dataclass: fill mode-dependent defaults through object.__setattr__.
        if not self.tool_prefix:
            object.__setattr__(self, "tool_prefix", defaults["tool_prefix"])
        if not self.server_name:
            object.__setattr__(self, "server_name", defaults["server_name"])
        if not self.server_description:
            object.__setattr__(self, "server_description", defaults["description"])

    @property
    def is_single_repo(self) -> bool:
        return self.mode == MODE_SINGLE

    def tool_name(self, operation: str) -> str:
        return f"{self.tool_prefix}_{operation}"


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _int_setting(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = _clean(environ.get(name))
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise UsageError(f"{name} must be an integer, got {raw!r}") from exc


def load_settings(environ: Optional[Mapping[str, str]] = None) -> ServerSettings:
    """Build :class:`ServerSettings` from environment variables."""

    env = os.environ if environ is None else environ

    single_repo_path = _clean(env.get("GITHUB_REPO_PATH"))
    owner = _clean(env.get("GITHUB_OWNER"))
    repo = _clean(env.get("GITHUB_REPO"))
    if single_repo_path is None and owner and repo:
        single_repo_path = f"{owner}/{repo}"

    return ServerSettings(
        server_token=_clean(env.get("SERVER_TOKEN")),
        github_token=_clean(env.get("GITHUB_PAT")) or _clean(env.get("GITHUB_TOKEN")),
        host=_clean(env.get("HOST")) or "0.0.0.0",
        port=_int_setting(env, "PORT", DEFAULT_PORT),
        mode=(_clean(env.get("MCP_MODE")) or MODE_CATALOG).lower(),
        catalog_source=_clean(env.get("MCP_CATALOG")) or "docs",
        tool_prefix=_clean(env.get("MCP_TOOL_PREFIX")) or "",
        server_name=_clean(env.get("MCP_SERVER_NAME")) or "",
        single_repo_path=single_repo_path,
        default_branch=_clean(env.get("GITHUB_DEFAULT_BRANCH")) or DEFAULT_BRANCH,
        branch_attempts=_int_setting(env, "BRANCH_CREATE_MAX_ATTEMPTS", DEFAULT_BRANCH_ATTEMPTS),
    )


__all__ = [
    "BASE_LOGGER",
    "CHAT_LEVEL",
    "DEFAULT_BRANCH",
    "DEFAULT_PORT",
    "DETAILED_LEVEL",
    "GITHUB_ACCEPT_HEADER",
    "GITHUB_API_BASE",
    "GITHUB_LOGGER",
    "GITHUB_USER_AGENT",
    "GITHUB_WEB_BASE",
    "HTTPX_MAX_CONNECTIONS",
    "HTTPX_MAX_KEEPALIVE",
    "HTTPX_TIMEOUT",
    "MODE_CATALOG",
    "MODE_SINGLE",
    "SERVER_START_TIME",
    "ServerSettings",
    "TOOLS_LOGGER",
    "load_settings",
]
