"""Directory listing executor."""

from __future__ import annotations

from typing import Optional

from mcp.types import CallToolResult

from catalog_mcp.config import TOOLS_LOGGER
from catalog_mcp.exceptions import RemoteAPIError
from catalog_mcp.folder_guard import enforce_folder_security, normalize_repo_path
from catalog_mcp.rendering import failure_text, format_repo_structure, format_size_kb, text_result

from ._context import ToolContext


async def list_contents(ctx: ToolContext, path: Optional[str] = None) -> CallToolResult:
    """List one directory of the configured repository.

    With no ``path`` the listing starts at the folder restriction (or the
    repository root); explicit paths must stay inside the folder.
    """

    credentials, client = ctx.require_repo()
    folder = credentials.folder

    target = normalize_repo_path(path)
    if folder:
        target = enforce_folder_security(target, folder) if target else normalize_repo_path(folder)

    folder_context = f' (restricted to "{folder}" folder)' if folder else ""
    location = f"{credentials.full_name}/{target}" if target else credentials.full_name
    TOOLS_LOGGER.chat("Listing %s%s", location, folder_context)

    try:
        contents = await client.get(ctx.contents_path(target))
    except RemoteAPIError as exc:
        if exc.is_not_found:
            text = f"❌ Path not found: {location}"
            if folder:
                text += f"\n🔒 Folder Restriction: {folder}"
            return text_result(text)
        TOOLS_LOGGER.warning("Error listing repository contents of %s: %s", location, exc)
        repo_line = location if target else f"{credentials.full_name} (root)"
        headline = f"Error listing repository contents\n📁 Repository: {repo_line}"
        return text_result(failure_text(headline, exc, folder=folder), is_error=True)

    if isinstance(contents, dict):
        text = (
            f"📄 File: {contents.get('name')}\n"
            f"📍 Path: {contents.get('path')}\n"
            f"📏 Size: {format_size_kb(contents.get('size'))}\n"
            f"🔗 Download URL: {contents.get('download_url')}"
        )
        if folder:
            text += f"\n🔒 Folder Restriction: {folder}"
        return text_result(text)

    structure = format_repo_structure(contents or [], target)
    TOOLS_LOGGER.detailed("Listed %d entries under %s", len(contents or []), location)
    return text_result(f"📁 Repository Contents: {location}{folder_context}\n\n{structure}")


__all__ = ["list_contents"]
