"""Heuristic placement of new files based on the repository layout."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional

from mcp.types import CallToolResult

from catalog_mcp.config import TOOLS_LOGGER
from catalog_mcp.exceptions import RemoteAPIError, ToolExecutionError, UsageError
from catalog_mcp.rendering import result_text, text_result

from ._context import ToolContext
from .files import add_or_update_file

CONFIG_DIR_MARKERS = ("config", "settings", "env")


@dataclass
class PlacementAnalysis:
    suggested_path: str = ""
    notes: List[str] = field(default_factory=list)
    file_exists: bool = False

    def note(self, line: str) -> None:
        self.notes.append(line)

    @property
    def text(self) -> str:
        return "".join(f"{line}\n" for line in self.notes)


def _is_dir(item: Any) -> bool:
    return isinstance(item, Mapping) and item.get("type") == "dir"


def _config_dirs(listing: Any) -> List[Mapping[str, Any]]:
    if not isinstance(listing, list):
        return []
    return [
        item
        for item in listing
        if _is_dir(item) and any(m in str(item.get("name", "")).lower() for m in CONFIG_DIR_MARKERS)
    ]


def _matches_type(name: str, file_type: str) -> bool:
    name, file_type = name.lower(), file_type.lower()
    return file_type in name or name in file_type


def _file_name_with_extension(file_name: str, extension: str) -> str:
    extension = extension.lstrip(".")
    if not extension or file_name.lower().endswith(f".{extension.lower()}"):
        return file_name
    return f"{file_name}.{extension}"


async def analyze_placement(
    ctx: ToolContext, *, file_name: str, file_type: str, file_extension: str
) -> PlacementAnalysis:
    """Pick a path for a new file, recording the reasoning as notes.

    The first type-specific subdirectory found inside a config-like directory
    wins. Otherwise the first candidate that could be listed decides the
    fallback, and with no candidates at all the file goes under ``configs/``.
    """

    credentials, client = ctx.require_repo()
    folder = credentials.folder
    prefix = f"{folder}/" if folder else ""
    leaf = _file_name_with_extension(file_name, file_extension)
    analysis = PlacementAnalysis()

    TOOLS_LOGGER.chat("Step 1: analyzing repository structure")
    root_listing = await client.get(ctx.contents_path(folder or ""))
    candidates = _config_dirs(root_listing)

    fallback: Optional[str] = None
    fallback_note: Optional[str] = None
    for candidate in candidates:
        dir_path = f"{prefix}{candidate['name']}"
        try:
            dir_listing = await client.get(ctx.contents_path(dir_path))
        except RemoteAPIError as exc:
            TOOLS_LOGGER.warning("Could not analyze %s: %s", dir_path, exc)
            continue
        subdirs = [item for item in dir_listing or [] if _is_dir(item)]

        specific = [item for item in subdirs if _matches_type(str(item.get("name", "")), file_type)]
        if specific:
            target_dir = f"{dir_path}/{specific[0]['name']}"
            analysis.suggested_path = f"{target_dir}/{leaf}"
            analysis.note(f"✅ Found specific directory for {file_type}: {target_dir}")
            break

        if fallback is None:
            if subdirs:
                fallback = f"{dir_path}/{file_type}/{leaf}"
                fallback_note = f"📁 Will create new {file_type} subdirectory in {dir_path}"
            else:
                fallback = f"{dir_path}/{leaf}"
                fallback_note = f"📄 Will place directly in {dir_path}"

    if not analysis.suggested_path:
        if fallback is not None and fallback_note is not None:
            analysis.suggested_path = fallback
            analysis.note(fallback_note)
        else:
            analysis.suggested_path = f"{prefix}configs/{file_type}/{leaf}"
            analysis.note(f"📁 No config directories found, will create: {prefix}configs/{file_type}/")

    TOOLS_LOGGER.chat("Step 2: checking if %s already exists", analysis.suggested_path)
    try:
        await client.get(ctx.contents_path(analysis.suggested_path))
    except RemoteAPIError as exc:
        if exc.is_not_found:
            analysis.note(f"✅ Path is available: {analysis.suggested_path}")
        else:
            TOOLS_LOGGER.warning("Could not probe %s: %s", analysis.suggested_path, exc)
    else:
        analysis.file_exists = True
        analysis.note(f"⚠️ File already exists at {analysis.suggested_path}")

    return analysis


async def smart_add_file(
    ctx: ToolContext,
    file_name: str,
    file_content: str,
    file_type: Optional[str] = None,
    file_extension: Optional[str] = None,
    description: Optional[str] = None,
) -> CallToolResult:
    credentials, _ = ctx.require_repo()
    if credentials.is_file:
        raise UsageError(
            f'Config "{ctx.config_name}" points to a single file; '
            f"use {ctx.settings.tool_name('add_or_update_file')} instead."
        )
    if not file_name.strip():
        raise UsageError("file_name must not be empty")

    file_type = file_type or "general"
    file_extension = file_extension or "json"
    folder = credentials.folder

    try:
        analysis = await analyze_placement(
            ctx, file_name=file_name, file_type=file_type, file_extension=file_extension
        )
    except RemoteAPIError as exc:
        TOOLS_LOGGER.error("Error in smart file addition for %s: %s", credentials.full_name, exc)
        raise ToolExecutionError("analyze repository structure", exc, folder=folder) from exc

    pr_body = (
        "## 🔧 File Addition\n\n"
        f"**Type:** {file_type}\n"
        f"**Name:** {file_name}\n"
        f"**Path:** {analysis.suggested_path}\n"
    )
    if folder:
        pr_body += f"**Folder Restriction:** {folder}\n"
    if description:
        pr_body += f"**Description:** {description}\n\n"
    pr_body += (
        f"### 📊 Repository Analysis\n{analysis.text}\n"
        "This file was automatically placed based on repository structure analysis."
    )

    TOOLS_LOGGER.chat("Step 3: creating %s", analysis.suggested_path)
    added = await add_or_update_file(
        ctx,
        file_content=file_content,
        commit_message=f"Add {file_name} {file_type} file",
        pr_title=f"Add {file_name} file",
        file_path=analysis.suggested_path,
        pr_description=pr_body,
    )

    text = (
        "🧠 Smart File Analysis Complete!\n\n"
        f"### 📊 Repository Analysis\n{analysis.text}\n"
        f"### 📍 Suggested Placement\n{analysis.suggested_path}\n"
    )
    if folder:
        text += f"### 🔒 Folder Restriction\n{folder}\n"
    text += f"\n{result_text(added)}"
    return text_result(text)


__all__ = ["PlacementAnalysis", "analyze_placement", "smart_add_file"]
