"""Built-in catalogs selectable with ``MCP_CATALOG=<name>``.

Entries leave ``github_token`` empty so the process-wide GitHub token is used.
"""

from __future__ import annotations

from typing import Dict, List

DOCS_CATALOG: List[Dict[str, str]] = [
    {
        "name": "app",
        "description": "docs for how to build a new app following the organization guidelines",
        "github_repo_path": "ghostmind-dev/docs/docs/app/app.md",
    },
    {
        "name": "base",
        "description": "base configuration and setup documentation for development environment",
        "github_repo_path": "ghostmind-dev/docs/docs/app/base.md",
    },
    {
        "name": "custom",
        "description": "custom configuration and customization guidelines for projects",
        "github_repo_path": "ghostmind-dev/docs/docs/app/custom.md",
    },
    {
        "name": "docker",
        "description": "docker configuration and containerization documentation",
        "github_repo_path": "ghostmind-dev/docs/docs/app/docker.md",
    },
    {
        "name": "infra",
        "description": "infrastructure setup and deployment documentation",
        "github_repo_path": "ghostmind-dev/docs/docs/app/infra.md",
    },
    {
        "name": "local",
        "description": "local development environment setup and configuration",
        "github_repo_path": "ghostmind-dev/docs/docs/app/local.md",
    },
    {
        "name": "rules",
        "description": "global custom rules and guidelines for development practices",
        "github_repo_path": "ghostmind-dev/docs/docs/rules/global-custom.mdc",
    },
]

CONFIGS_CATALOG: List[Dict[str, str]] = [
    {
        "name": "gitignore",
        "description": "Update .gitignore files",
        "github_repo_path": "ghostmind-dev/config/config/git",
    },
    {
        "name": "devcontainer",
        "description": "Update devcontainer template configuration",
        "github_repo_path": "ghostmind-dev/config/config/devcontainer/",
    },
    {
        "name": "meta",
        "description": "json schema for meta.json",
        "github_repo_path": "ghostmind-dev/config/config/meta",
    },
    {
        "name": "vscode_settings_dynamic",
        "description": "vscode settings for dynamic properties",
        "github_repo_path": "ghostmind-dev/config/config/vscode",
    },
    {
        "name": "vscode_settings_static",
        "description": "vscode settings for static properties",
        "github_repo_path": "ghostmind-dev/features/features/src/settings",
    },
    {
        "name": "vscode_extensions",
        "description": "vscode extensions",
        "github_repo_path": "ghostmind-dev/features/features/src/extensions",
    },
    {
        "name": "vscode_themes",
        "description": "vscode themes",
        "github_repo_path": "ghostmind-dev/features/features/src/themes",
    },
    {
        "name": "init",
        "description": "init settings for the devcontainer",
        "github_repo_path": "ghostmind-dev/features/features/src/init",
    },
    {
        "name": "zsh",
        "description": "zsh settings",
        "github_repo_path": "ghostmind-dev/config/config/zsh",
    },
]

PRESET_CATALOGS: Dict[str, List[Dict[str, str]]] = {
    "docs": DOCS_CATALOG,
    "configs": CONFIGS_CATALOG,
}

__all__ = ["CONFIGS_CATALOG", "DOCS_CATALOG", "PRESET_CATALOGS"]
