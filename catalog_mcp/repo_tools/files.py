"""File-level executors: existence check, content fetch and add/update via PR."""

from __future__ import annotations

import base64
from typing import Any, Dict, Optional

from mcp.types import CallToolResult

from catalog_mcp.branches import allocate_branch
from catalog_mcp.config import TOOLS_LOGGER
from catalog_mcp.exceptions import (
    BranchAllocationError,
    RemoteAPIError,
    ToolExecutionError,
    UsageError,
)
from catalog_mcp.rendering import context_lines, failure_text, format_size_kb, text_result

from ._context import ToolContext, reject_outside_folder, reroot_into_folder


async def check_file_exists(ctx: ToolContext, file_path: Optional[str] = None) -> CallToolResult:
    credentials, client = ctx.require_repo()
    path, auto_detected = ctx.resolve_file_target(file_path, reject_outside_folder)
    folder = credentials.folder
    TOOLS_LOGGER.chat("Checking whether %s exists in %s", path, credentials.full_name)

    try:
        data = await client.get(ctx.contents_path(path))
    except RemoteAPIError as exc:
        if exc.is_not_found:
            text = f"❌ File does not exist: {path}\n"
            text += context_lines(auto_detected=auto_detected, folder=folder, trailing=False)
            return text_result(text)
        TOOLS_LOGGER.warning("Error checking file %s: %s", path, exc)
        headline = f"Error checking file: {path}"
        return text_result(
            failure_text(headline, exc, auto_detected=auto_detected, folder=folder),
            is_error=True,
        )

    if not isinstance(data, dict) or data.get("type", "file") != "file":
        text = f"📁 Path exists but is a directory: {path}\n"
        text += context_lines(auto_detected=auto_detected, folder=folder, trailing=False)
        return text_result(text)

    text = (
        f"✅ File exists: {path}\n"
        f"📏 Size: {format_size_kb(data.get('size'))}\n"
        f"🔗 URL: {data.get('html_url')}\n"
    )
    text += context_lines(auto_detected=auto_detected, folder=folder, trailing=False)
    return text_result(text)


def _decode_content(data: Dict[str, Any]) -> str:
    raw = base64.b64decode(data.get("content") or "")
    return raw.decode("utf-8", errors="replace")


async def get_file_content(
    ctx: ToolContext,
    file_path: Optional[str] = None,
    branch: Optional[str] = None,
) -> CallToolResult:
    credentials, client = ctx.require_repo()
    path, auto_detected = ctx.resolve_file_target(file_path, reroot_into_folder)
    folder = credentials.folder
    branch = branch or ctx.settings.default_branch
    TOOLS_LOGGER.chat("Reading %s@%s from %s", path, branch, credentials.full_name)

    try:
        data = await client.get(ctx.contents_path(path), params={"ref": branch})
    except RemoteAPIError as exc:
        if exc.is_not_found:
            text = f"❌ File not found: {path}\n"
            text += context_lines(auto_detected=auto_detected, folder=folder)
            text += (
                "\n💡 The file doesn't exist yet. You can create it using the "
                f"{ctx.settings.tool_name('add_or_update_file')} tool."
            )
            return text_result(text)
        TOOLS_LOGGER.warning("Error accessing file %s: %s", path, exc)
        headline = f"Error accessing file: {path}"
        return text_result(
            failure_text(headline, exc, auto_detected=auto_detected, folder=folder, hint=False),
            is_error=True,
        )

    if not isinstance(data, dict) or data.get("type") != "file":
        kind = data.get("type") if isinstance(data, dict) else "dir"
        text = f"❌ Error: \"{path}\" is not a file (it's a {kind})\n"
        text += context_lines(auto_detected=auto_detected, folder=folder, trailing=False)
        return text_result(text, is_error=True)

    header = (
        f"📄 File: {path}\n"
        f"🌿 Branch: {branch}\n"
        f"📏 Size: {format_size_kb(data.get('size'))}\n"
    )
    header += context_lines(auto_detected=auto_detected, folder=folder)

    if data.get("encoding") != "base64":
        # GitHub omits inline content for large files.
        return text_result(
            header
            + "\n⚠️ Content is too large to be returned inline.\n"
            + f"🔗 Download URL: {data.get('download_url')}"
        )

    content = _decode_content(data)
    return text_result(f"{header}\n📝 Content:\n```\n{content}\n```")


async def add_or_update_file(
    ctx: ToolContext,
    file_content: str,
    commit_message: str,
    pr_title: str,
    file_path: Optional[str] = None,
    pr_description: Optional[str] = None,
) -> CallToolResult:
    """Commit ``file_content`` on a fresh branch and open a pull request.

    Steps run strictly in order and nothing is rolled back: a failure after
    the branch exists leaves that branch behind.
    """

    credentials, client = ctx.require_repo()
    path, auto_detected = ctx.resolve_file_target(file_path, reroot_into_folder)
    folder = credentials.folder
    full_name = credentials.full_name
    default_branch = ctx.settings.default_branch

    try:
        TOOLS_LOGGER.chat("Step 1: checking if %s already exists", path)
        existing_sha: Optional[str] = None
        try:
            existing = await client.get(ctx.contents_path(path))
        except RemoteAPIError as exc:
            if not exc.is_not_found:
                raise
            TOOLS_LOGGER.detailed("%s does not exist, will create it", path)
        else:
            if not isinstance(existing, dict) or existing.get("type", "file") != "file":
                raise UsageError(f'"{path}" is a directory, not a file')
            existing_sha = existing.get("sha")
            TOOLS_LOGGER.detailed("%s already exists, will update it", path)
        file_exists = existing_sha is not None

        TOOLS_LOGGER.chat("Step 2: reading %s branch reference", default_branch)
        ref = await client.get(f"/repos/{full_name}/git/ref/heads/{default_branch}")
        base_sha = ((ref or {}).get("object") or {}).get("sha")
        if not base_sha:
            raise RemoteAPIError(None, message="Missing SHA in branch ref response")

        TOOLS_LOGGER.chat("Step 3: creating branch")
        allocation = await allocate_branch(
            client,
            full_name=full_name,
            base_name=path.split("/")[-1] or "config",
            base_sha=base_sha,
            max_attempts=ctx.settings.branch_attempts,
        )

        TOOLS_LOGGER.chat("Step 4: committing %s to %s", path, allocation.name)
        payload: Dict[str, Any] = {
            "message": commit_message,
            "content": base64.b64encode(file_content.encode("utf-8")).decode("ascii"),
            "branch": allocation.name,
        }
        if file_exists:
            payload["sha"] = existing_sha
        await client.put(ctx.contents_path(path), payload)

        TOOLS_LOGGER.chat("Step 5: opening pull request")
        body = pr_description
        if not body:
            body = f"Automated {'update' if file_exists else 'addition'} of configuration file: {path}"
            if auto_detected:
                body += "\n\n🧠 Auto-detected from configuration"
            if folder:
                body += f"\n🔒 Folder Restriction: {folder}"
        pull = await client.post(
            f"/repos/{full_name}/pulls",
            {
                "title": pr_title,
                "head": allocation.name,
                "base": default_branch,
                "body": body,
                "draft": False,
            },
        )
    except (RemoteAPIError, BranchAllocationError, UsageError) as exc:
        TOOLS_LOGGER.error("Error adding/updating file %s in %s: %s", path, full_name, exc)
        raise ToolExecutionError("add or update file", exc, path=path, folder=folder) from exc

    pull = pull or {}
    TOOLS_LOGGER.info("Opened pull request #%s for %s", pull.get("number"), path)
    text = (
        f"🎉 Successfully {'updated' if file_exists else 'added'} file!\n\n"
        f"📄 File: {path}\n"
        f"🌿 Branch: {allocation.name}\n"
        f"🔄 Pull Request: #{pull.get('number')}\n"
        f"🔗 PR URL: {pull.get('html_url')}\n"
    )
    text += context_lines(auto_detected=auto_detected, folder=folder)
    text += "\nThe pull request has been created and is ready for review."
    return text_result(text)


__all__ = ["add_or_update_file", "check_file_exists", "get_file_content"]
