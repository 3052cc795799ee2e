from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

from catalog_mcp import __version__
from catalog_mcp.catalog import Catalog
from catalog_mcp.config import SERVER_START_TIME, ServerSettings
from catalog_mcp.metrics import _metrics_snapshot


def _build_health_payload(settings: ServerSettings, catalog: Catalog) -> dict[str, Any]:
    uptime_seconds = max(0, int(time.time() - SERVER_START_TIME))
    tokens_configured = bool(settings.server_token) and bool(settings.github_token)
    return {
        "status": "ok" if tokens_configured else "warning",
        "version": __version__,
        "uptime_seconds": uptime_seconds,
        "server": {
            "name": settings.server_name,
            "mode": settings.mode,
            "tool_prefix": settings.tool_prefix,
            "default_branch": settings.default_branch,
        },
        "catalog": {
            "source": None if settings.is_single_repo else settings.catalog_source,
            "entries": len(catalog),
        },
        "server_token_configured": bool(settings.server_token),
        "github_token_present": bool(settings.github_token),
        "metrics": _metrics_snapshot(),
    }


def build_healthz_endpoint(
    settings: ServerSettings, catalog: Catalog
) -> Callable[[Request], Any]:
    async def _endpoint(_: Request) -> JSONResponse:
        return JSONResponse(_build_health_payload(settings, catalog))

    return _endpoint


def register_healthz_route(app: Any, settings: ServerSettings, catalog: Catalog) -> None:
    """Register the /healthz route on the ASGI app."""

    app.add_route("/healthz", build_healthz_endpoint(settings, catalog), methods=["GET"])


__all__ = ["register_healthz_route"]
