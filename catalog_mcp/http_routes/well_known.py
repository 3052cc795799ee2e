"""OAuth 2.0 Protected Resource Metadata (RFC 9728) for MCP clients."""

from __future__ import annotations

from typing import Any

from starlette.requests import Request
from starlette.responses import JSONResponse

PROTECTED_RESOURCE_PATH = "/.well-known/oauth-protected-resource"


def _origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


async def protected_resource_metadata(request: Request) -> JSONResponse:
    return JSONResponse(
        {
            "resource": f"{_origin(request)}/mcp",
            "bearer_methods_supported": ["header"],
        }
    )


def register_well_known_routes(app: Any) -> None:
    app.add_route(PROTECTED_RESOURCE_PATH, protected_resource_metadata, methods=["GET"])


__all__ = ["register_well_known_routes"]
