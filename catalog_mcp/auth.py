"""Static bearer-token authentication for the MCP endpoint."""

from __future__ import annotations

import secrets
from typing import Optional

from starlette.requests import Request
from starlette.responses import PlainTextResponse

from .config import BASE_LOGGER

WWW_AUTHENTICATE = 'Bearer realm="MCP Server", error="invalid_token"'


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    if not header.startswith("Bearer "):
        return None
    return header[len("Bearer "):]


def is_authorized(request: Request, server_token: Optional[str]) -> bool:
    """Return True when the request carries ``server_token`` as its bearer token.

    With no server token configured every request is refused.
    """

    if not server_token:
        BASE_LOGGER.error("SERVER_TOKEN environment variable is not set; refusing request")
        return False
    presented = _bearer_token(request)
    if presented is None:
        return False
    return secrets.compare_digest(presented.encode("utf-8"), server_token.encode("utf-8"))


def unauthorized_response() -> PlainTextResponse:
    return PlainTextResponse(
        "Unauthorized",
        status_code=401,
        headers={"WWW-Authenticate": WWW_AUTHENTICATE},
    )


__all__ = ["WWW_AUTHENTICATE", "is_authorized", "unauthorized_response"]
