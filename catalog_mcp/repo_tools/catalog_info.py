"""Catalog-only tools: enumerate entries and describe one of them."""

from __future__ import annotations

from typing import Optional

from mcp.types import CallToolResult

from catalog_mcp.catalog import Catalog, ConfigurationEntry
from catalog_mcp.config import TOOLS_LOGGER
from catalog_mcp.path_resolver import repo_web_url
from catalog_mcp.rendering import text_result

from ._context import ToolContext

NO_DESCRIPTION = "No description available"


def entry_url(entry: ConfigurationEntry) -> str:
    return repo_web_url(entry.descriptor())


def describe_entry(entry: ConfigurationEntry) -> str:
    return (
        f"📋 Configuration: **{entry.name}**\n"
        f"🔗 URL: {entry_url(entry)}\n"
        f"📝 Description: {entry.description or NO_DESCRIPTION}"
    )


def describe_catalog(catalog: Catalog) -> str:
    blocks = [
        f"📋 **{entry.name}**\n"
        f"   URL: {entry_url(entry)}\n"
        f"   Description: {entry.description or NO_DESCRIPTION}"
        for entry in catalog
    ]
    return "📚 Available Configurations:\n\n" + "\n\n".join(blocks)


async def list_configurations(ctx: ToolContext) -> CallToolResult:
    TOOLS_LOGGER.chat("Listing %d configurations", len(ctx.catalog))
    return text_result(describe_catalog(ctx.catalog))


async def get_configuration_info(
    ctx: ToolContext, config_name: Optional[str] = None
) -> CallToolResult:
    if not config_name:
        return text_result(describe_catalog(ctx.catalog))

    entry = ctx.catalog.find(config_name)
    if entry is None:
        return text_result(
            f"❌ Configuration '{config_name}' not found.\n\n"
            f"Available configurations: {', '.join(ctx.catalog.names)}"
        )
    return text_result(describe_entry(entry))


__all__ = [
    "describe_catalog",
    "describe_entry",
    "entry_url",
    "get_configuration_info",
    "list_configurations",
]
