"""Text rendering for tool results."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional

from mcp.types import CallToolResult, TextContent

FAILURE_HINT = "💡 Please check your GitHub token permissions and repository access."


def text_result(text: str, *, is_error: bool = False) -> CallToolResult:
    return CallToolResult(content=[TextContent(type="text", text=text)], isError=is_error)


def result_text(result: CallToolResult) -> str:
    """Return the text of the first content item of ``result``."""

    for item in result.content:
        if isinstance(item, TextContent):
            return item.text
    return ""


def format_size_kb(size: Any) -> str:
    try:
        return f"{float(size or 0) / 1024:.1f}KB"
    except (TypeError, ValueError):
        return "0.0KB"


def _sort_key(item: Mapping[str, Any]) -> tuple:
    return (0 if item.get("type") == "dir" else 1, str(item.get("name", "")).lower())


def format_repo_structure(contents: Iterable[Mapping[str, Any]], path: str = "") -> str:
    """Render a contents listing, directories first, then by name."""

    depth = len([segment for segment in (path or "").split("/") if segment])
    indent = "  " * depth
    lines: List[str] = []
    for item in sorted(contents, key=_sort_key):
        icon = "📁" if item.get("type") == "dir" else "📄"
        size = f" ({format_size_kb(item['size'])})" if item.get("size") else ""
        lines.append(f"{indent}{icon} {item.get('name', '')}{size}")
    return "".join(f"{line}\n" for line in lines)


def context_lines(*, auto_detected: bool, folder: Optional[str], trailing: bool = True) -> str:
    """Lines noting auto-detection and the folder restriction, when relevant."""

    text = ""
    if auto_detected:
        text += "🧠 Auto-detected from configuration\n"
    if folder:
        text += f"🔒 Folder Restriction: {folder}"
        if trailing:
            text += "\n"
    return text


def failure_text(
    headline: str,
    error: BaseException,
    *,
    auto_detected: bool = False,
    folder: Optional[str] = None,
    hint: bool = True,
) -> str:
    text = f"❌ {headline}\n"
    text += context_lines(auto_detected=auto_detected, folder=folder)
    text += f"\n🔧 {error}"
    if hint:
        text += f"\n\n{FAILURE_HINT}"
    return text


__all__ = [
    "FAILURE_HINT",
    "context_lines",
    "failure_text",
    "format_repo_structure",
    "format_size_kb",
    "result_text",
    "text_result",
]
