from __future__ import annotations

import json
from collections.abc import Callable
from typing import Any, Awaitable

from mcp.types import PARSE_ERROR, ErrorData
from starlette.requests import Request
from starlette.responses import JSONResponse, PlainTextResponse, Response

from catalog_mcp.auth import is_authorized, unauthorized_response
from catalog_mcp.config import BASE_LOGGER
from catalog_mcp.mcp_server.dispatcher import RequestDispatcher, jsonrpc_error

# Starlette narrows an unset method list to GET for function endpoints.
_ROUTED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def build_mcp_endpoint(
    dispatcher: RequestDispatcher,
) -> Callable[[Request], Awaitable[Response]]:
    server_token = dispatcher.settings.server_token

    async def _endpoint(request: Request) -> Response:
        if not is_authorized(request, server_token):
            BASE_LOGGER.warning("Rejected unauthenticated %s %s", request.method, request.url.path)
            return unauthorized_response()

        if request.method != "POST":
            return PlainTextResponse("Method not allowed", status_code=405)

        body = await request.body()
        try:
            message: Any = json.loads(body)
        except (json.JSONDecodeError, UnicodeDecodeError):
            BASE_LOGGER.warning("Rejected unparseable JSON-RPC body (%d bytes)", len(body))
            return JSONResponse(
                jsonrpc_error(None, ErrorData(code=PARSE_ERROR, message="Parse error")),
                status_code=400,
            )

        if isinstance(message, dict):
            BASE_LOGGER.debug("Handling MCP request: %s", message.get("method"))
        response = await dispatcher.handle(message)
        if response is None:
            return Response(status_code=202)
        return JSONResponse(response)

    return _endpoint


def register_mcp_route(app: Any, dispatcher: RequestDispatcher) -> None:
    """Register the JSON-RPC endpoint at ``/mcp``.

    Other verbs are routed here too so authentication is checked before the
    method; non-POST requests then get 405.
    """

    app.add_route("/mcp", build_mcp_endpoint(dispatcher), methods=_ROUTED_METHODS)


__all__ = ["register_mcp_route"]
