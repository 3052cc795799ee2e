"""Async GitHub REST client with request logging and metrics."""

from __future__ import annotations

import asyncio
import time
from typing import Any, Callable, Dict, Optional, Tuple
from urllib.parse import urlencode

import httpx

from .config import (
    GITHUB_ACCEPT_HEADER,
    GITHUB_API_BASE,
    GITHUB_USER_AGENT,
    HTTPX_MAX_CONNECTIONS,
    HTTPX_MAX_KEEPALIVE,
    HTTPX_TIMEOUT,
)
from .exceptions import GitHubAuthError, GitHubRateLimitError, RemoteAPIError
from .tool_logging import _record_github_request

_http_client_github: Optional[httpx.AsyncClient] = None
_http_client_github_loop: Optional[asyncio.AbstractEventLoop] = None


def _active_event_loop() -> asyncio.AbstractEventLoop:
    """Return the active asyncio event loop, tolerant of missing running loop."""

    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.get_event_loop()


def _refresh_async_client(
    client: Optional[httpx.AsyncClient],
    *,
    client_loop: Optional[asyncio.AbstractEventLoop],
    rebuild: Callable[[], httpx.AsyncClient],
    force_refresh: bool = False,
) -> Tuple[httpx.AsyncClient, asyncio.AbstractEventLoop]:
    """Return a loop-safe AsyncClient, rebuilding if necessary.

    An AsyncClient's connection pool is bound to the loop it first ran on.
    Tests and reloaded workers may run on a different loop, so the client is
    recreated when the loop differs or the client is already closed.
    """

    loop = _active_event_loop()

    needs_refresh = force_refresh or client is None or client.is_closed
    if not needs_refresh and client_loop is not None and client_loop is not loop:
        needs_refresh = True

    if not needs_refresh:
        return client, client_loop or loop

    if client is not None and not client.is_closed:
        if client_loop is not None and not client_loop.is_closed() and client_loop.is_running():
            client_loop.create_task(client.aclose())

    return rebuild(), loop


def _github_client_instance() -> httpx.AsyncClient:
    """Shared async client for GitHub API requests.

    The client carries no credentials; :class:`GitHubClient` adds the
    ``Authorization`` header per request so one pool serves every token.
    """

    global _http_client_github, _http_client_github_loop

    def _build_client() -> httpx.AsyncClient:
        http_limits = httpx.Limits(
            max_connections=HTTPX_MAX_CONNECTIONS,
            max_keepalive_connections=HTTPX_MAX_KEEPALIVE,
        )
        return httpx.AsyncClient(
            base_url=GITHUB_API_BASE,
            timeout=HTTPX_TIMEOUT,
            limits=http_limits,
            headers={"Accept": GITHUB_ACCEPT_HEADER, "User-Agent": GITHUB_USER_AGENT},
        )

    _http_client_github, _http_client_github_loop = _refresh_async_client(
        _http_client_github,
        client_loop=_http_client_github_loop,
        rebuild=_build_client,
    )
    return _http_client_github


async def close_github_client() -> None:
    """Close the shared client; used on application shutdown."""

    global _http_client_github, _http_client_github_loop
    client = _http_client_github
    _http_client_github = None
    _http_client_github_loop = None
    if client is not None and not client.is_closed:
        await client.aclose()


def _github_api_url_for_logs(path: str, params: Optional[Dict[str, Any]] = None) -> str:
    """Build an absolute GitHub API URL for logging.

    Log lines stay clickable even when a request fails before an
    ``httpx.Response`` exists.
    """

    base = GITHUB_API_BASE.rstrip("/")
    normalized = path if path.startswith("/") else f"/{path}"
    url = f"{base}{normalized}"
    if params:
        cleaned = {k: v for k, v in params.items() if v is not None}
        qs = urlencode(cleaned, doseq=True)
        if qs:
            url = f"{url}?{qs}"
    return url


def _error_from_response(resp: httpx.Response) -> RemoteAPIError:
    reason = resp.reason_phrase or ""
    body = resp.text
    if resp.status_code == 401:
        return GitHubAuthError(resp.status_code, reason, body)
    if resp.status_code == 429 or resp.headers.get("X-RateLimit-Remaining") == "0":
        return GitHubRateLimitError(resp.status_code, reason, body)
    return RemoteAPIError(resp.status_code, reason, body)


class GitHubClient:
    """Token-scoped view of the shared GitHub client.

    One instance is built per tool call from the entry's credentials. Calls
    return the decoded JSON body (``None`` for empty bodies) or raise
    :class:`RemoteAPIError` with the HTTP status attached.
    """

    def __init__(
        self,
        token: str,
        *,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ) -> None:
        self._token = token
        self._client_factory = client_factory or _github_client_instance

    def __repr__(self) -> str:
        return f"{type(self).__name__}(token=***)"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": GITHUB_ACCEPT_HEADER,
            "User-Agent": GITHUB_USER_AGENT,
        }

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_body: Optional[Dict[str, Any]] = None,
    ) -> Any:
        method = method.upper()
        api_url_for_logs = _github_api_url_for_logs(path, params=params)
        client = self._client_factory()

        start = time.time()
        try:
            resp = await client.request(
                method, path, params=params, json=json_body, headers=self._headers()
            )
        except httpx.HTTPError as exc:
            _record_github_request(
                method=method,
                url=api_url_for_logs,
                status_code=None,
                duration_ms=int((time.time() - start) * 1000),
                error=True,
                exc=exc,
            )
            raise RemoteAPIError(None, message=f"GitHub request failed: {exc}") from exc

        _record_github_request(
            method=method,
            url=api_url_for_logs,
            status_code=resp.status_code,
            duration_ms=int((time.time() - start) * 1000),
            error=resp.is_error,
            resp=resp,
        )

        if resp.is_error:
            raise _error_from_response(resp)

        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    async def get(self, path: str, *, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, json_body: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("POST", path, json_body=json_body)

    async def put(self, path: str, json_body: Optional[Dict[str, Any]] = None) -> Any:
        return await self.request("PUT", path, json_body=json_body)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)


__all__ = [
    "GitHubClient",
    "_github_client_instance",
    "close_github_client",
]
