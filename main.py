"""Repository catalog MCP server.

ASGI entry point: ``uvicorn main:app``. Settings come from the environment
(see :func:`catalog_mcp.config.load_settings`); the catalog is the preset or
JSON file named by ``MCP_CATALOG``, or a single repository in ``single`` mode.
"""

from catalog_mcp.catalog import build_catalog
from catalog_mcp.config import load_settings
from catalog_mcp.server import create_app

settings = load_settings()
catalog = build_catalog(settings)
app = create_app(settings, catalog)
