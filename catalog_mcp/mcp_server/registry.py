"""Static tool registry: names, JSON Schemas and executors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from mcp.types import CallToolResult, Tool

from catalog_mcp.catalog import Catalog
from catalog_mcp.config import ServerSettings
from catalog_mcp.repo_tools.catalog_info import get_configuration_info, list_configurations
from catalog_mcp.repo_tools.files import add_or_update_file, check_file_exists, get_file_content
from catalog_mcp.repo_tools.listing import list_contents
from catalog_mcp.repo_tools.placement import smart_add_file

Executor = Callable[..., Awaitable[CallToolResult]]

_REMOTE_NOTE = (
    "This tool makes GitHub API calls, NOT local file system access. "
    "Operations are restricted to the configured folder if provided."
)


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_schema: Dict[str, Any]
    executor: Executor
    requires_config: bool = True
    write_action: bool = False

    def as_mcp_tool(self) -> Tool:
        return Tool(name=self.name, description=self.description, inputSchema=self.input_schema)


def _string(description: str, default: Optional[str] = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {"type": "string", "description": description}
    if default is not None:
        schema["default"] = default
    return schema


def _object_schema(
    properties: Dict[str, Any], required: List[str], *, with_config: bool, config_hint: str
) -> Dict[str, Any]:
    if with_config:
        properties = {
            "config_name": _string(f"Name of the configuration to target ({config_hint})"),
            **properties,
        }
        required = ["config_name", *required]
    return {"type": "object", "properties": properties, "required": required}


def build_tool_registry(settings: ServerSettings, catalog: Catalog) -> Dict[str, ToolSpec]:
    """Return the tools exposed for ``settings``, keyed by their full name."""

    with_config = not settings.is_single_repo
    config_hint = ", ".join(catalog.names)
    config_suffix = (
        f" Use the config_name parameter to specify which configuration to target ({config_hint})."
        if with_config
        else ""
    )

    def schema(properties: Dict[str, Any], required: List[str]) -> Dict[str, Any]:
        return _object_schema(
            properties, required, with_config=with_config, config_hint=config_hint
        )

    specs: List[ToolSpec] = [
        ToolSpec(
            name=settings.tool_name("list_contents"),
            description=(
                "List contents and folders in the remote GitHub repository. "
                f"{_REMOTE_NOTE}{config_suffix}"
            ),
            input_schema=schema(
                {
                    "path": _string(
                        "Path within the remote GitHub repository (optional, defaults to "
                        "root or restricted folder)",
                        default="",
                    )
                },
                [],
            ),
            executor=list_contents,
        ),
        ToolSpec(
            name=settings.tool_name("check_file_exists"),
            description=(
                "Check if a specific file exists in the remote GitHub repository. "
                f"{_REMOTE_NOTE} If the configuration points to a specific file, that file "
                f"is checked automatically.{config_suffix}"
            ),
            input_schema=schema(
                {
                    "file_path": _string(
                        'Path to the file to check (e.g., "configs/my-config.json"). Must be '
                        "within the allowed folder. Optional if the configuration points to a "
                        "specific file."
                    )
                },
                [],
            ),
            executor=check_file_exists,
        ),
        ToolSpec(
            name=settings.tool_name("get_file_content"),
            description=(
                "Get the content of a file from the remote GitHub repository. "
                f"{_REMOTE_NOTE} If the configuration points to a specific file, that file "
                f"is retrieved automatically.{config_suffix}"
            ),
            input_schema=schema(
                {
                    "file_path": _string(
                        "Path to the file to retrieve. Placed within the allowed folder. "
                        "Optional if the configuration points to a specific file."
                    ),
                    "branch": _string(
                        f"Branch name (optional, defaults to {settings.default_branch})",
                        default=settings.default_branch,
                    ),
                },
                [],
            ),
            executor=get_file_content,
        ),
        ToolSpec(
            name=settings.tool_name("add_or_update_file"),
            description=(
                "Add or update a file in the remote GitHub repository with automatic branch "
                f"creation and pull request. {_REMOTE_NOTE} If the configuration points to a "
                f"specific file, that file is updated automatically.{config_suffix}"
            ),
            input_schema=schema(
                {
                    "file_path": _string(
                        'Path where to add the file (e.g., "configs/extensions/my-extension.json"). '
                        "Placed within the allowed folder. Optional if the configuration points "
                        "to a specific file."
                    ),
                    "file_content": _string("Content of the file to add or update"),
                    "commit_message": _string("Commit message for the file change"),
                    "pr_title": _string("Title for the pull request"),
                    "pr_description": _string(
                        "Description for the pull request (optional)", default=""
                    ),
                },
                ["file_content", "commit_message", "pr_title"],
            ),
            executor=add_or_update_file,
            write_action=True,
        ),
        ToolSpec(
            name=settings.tool_name("smart_add_file"),
            description=(
                "Add a file to the remote GitHub repository by analyzing the repository "
                "structure and choosing its placement, then open a pull request. "
                f"{_REMOTE_NOTE}{config_suffix}"
            ),
            input_schema=schema(
                {
                    "file_name": _string(
                        'Name of the file (e.g., "my-extension", "database-config")'
                    ),
                    "file_content": _string("Content of the file"),
                    "file_type": _string(
                        'Type of file (e.g., "config", "extension", "service", "database", "api")',
                        default="general",
                    ),
                    "file_extension": _string(
                        'File extension (e.g., "json", "yaml", "toml", "env")', default="json"
                    ),
                    "description": _string("Description of what this file does", default=""),
                },
                ["file_name", "file_content"],
            ),
            executor=smart_add_file,
            write_action=True,
        ),
    ]

    if with_config:
        specs = [
            ToolSpec(
                name=settings.tool_name("list"),
                description=(
                    "List all available configurations without requiring any parameters."
                ),
                input_schema={"type": "object", "properties": {}, "required": []},
                executor=list_configurations,
                requires_config=False,
            ),
            ToolSpec(
                name=settings.tool_name("get_info"),
                description=(
                    "Get detailed information about a specific configuration, or list all "
                    "available configurations when no config_name is provided."
                ),
                input_schema={
                    "type": "object",
                    "properties": {
                        "config_name": _string(
                            "Name of the configuration (optional, lists all when omitted)"
                        )
                    },
                    "required": [],
                },
                executor=get_configuration_info,
                requires_config=False,
            ),
            *specs,
        ]

    return {spec.name: spec for spec in specs}


__all__ = ["Executor", "ToolSpec", "build_tool_registry"]
