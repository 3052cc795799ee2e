"""ASGI application factory."""

from __future__ import annotations

import contextlib
from typing import Any, AsyncIterator, Optional

from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware

from .catalog import Catalog, build_catalog
from .config import BASE_LOGGER, ServerSettings
from .http_clients import close_github_client
from .http_routes.healthz import register_healthz_route
from .http_routes.mcp_endpoint import register_mcp_route
from .http_routes.well_known import register_well_known_routes
from .mcp_server.dispatcher import ClientFactory, RequestDispatcher


class _CacheControlMiddleware:
    """ASGI middleware forcing ``Cache-Control: no-store`` on every response.

    Plain ASGI rather than BaseHTTPMiddleware so response bodies are passed
    through untouched.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope.get("type") != "http":
            return await self.app(scope, receive, send)

        async def send_wrapper(message):
            if message.get("type") == "http.response.start":
                headers = [
                    (k, v) for (k, v) in message.get("headers", []) if k.lower() != b"cache-control"
                ]
                headers.append((b"cache-control", b"no-store"))
                message["headers"] = headers
            await send(message)

        return await self.app(scope, receive, send_wrapper)


def _log_startup(settings: ServerSettings, catalog: Catalog) -> None:
    BASE_LOGGER.info(
        "%s starting in %s mode (tool prefix %s)",
        settings.server_name,
        settings.mode,
        settings.tool_prefix,
    )
    BASE_LOGGER.info("Available configurations:")
    for entry in catalog:
        BASE_LOGGER.info("  - %s: %s (%s)", entry.name, entry.description, entry.github_repo_path)
    if not settings.server_token:
        BASE_LOGGER.warning("SERVER_TOKEN is not set; every /mcp request will be rejected")
    if not settings.github_token:
        BASE_LOGGER.warning("GITHUB_TOKEN is not set; entries without their own token will fail")
    BASE_LOGGER.info("Server will be available at http://%s:%s/mcp", settings.host, settings.port)


def create_app(
    settings: ServerSettings,
    catalog: Optional[Catalog] = None,
    *,
    client_factory: Optional[ClientFactory] = None,
) -> Starlette:
    """Build the Starlette app serving ``/mcp``, ``/healthz`` and RFC 9728 metadata."""

    catalog = catalog if catalog is not None else build_catalog(settings)
    dispatcher = RequestDispatcher(settings, catalog, client_factory=client_factory)

    @contextlib.asynccontextmanager
    async def lifespan(_: Any) -> AsyncIterator[None]:
        _log_startup(settings, catalog)
        try:
            yield
        finally:
            await close_github_client()

    app = Starlette(lifespan=lifespan)
    app.state.settings = settings
    app.state.catalog = catalog
    app.state.dispatcher = dispatcher

    register_mcp_route(app, dispatcher)
    register_healthz_route(app, settings, catalog)
    register_well_known_routes(app)

    # Last added is outermost: CORS preflight responses get no-store as well.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
        max_age=86400,
    )
    app.add_middleware(_CacheControlMiddleware)
    return app


__all__ = ["create_app"]
