"""Logging helpers for outbound GitHub requests.

Each request produces one human-readable line on the GitHub logger with a
clickable github.com link where one can be derived, plus structured
``extra`` fields for log processors. Metrics are updated in the same call.
"""

from __future__ import annotations

from typing import Any, Optional
from urllib.parse import parse_qs, urlparse

import httpx

from .config import GITHUB_API_BASE, GITHUB_LOGGER, GITHUB_WEB_BASE
from .metrics import _record_github_request as _record_github_request_metrics


def _derive_github_web_url(api_url: str) -> Optional[str]:
    """Convert an API URL into the equivalent github.com page, if any."""

    parsed = urlparse(api_url or "")
    parts = [p for p in parsed.path.split("/") if p]
    if len(parts) < 3 or parts[0] != "repos":
        return None

    web_base = GITHUB_WEB_BASE.rstrip("/")
    full_name = f"{parts[1]}/{parts[2]}"

    # /repos/{owner}/{repo}/contents/{path}?ref={ref}
    if len(parts) >= 5 and parts[3] == "contents":
        file_path = "/".join(parts[4:])
        ref = parse_qs(parsed.query).get("ref", ["main"])[0]
        return f"{web_base}/{full_name}/blob/{ref}/{file_path}"

    if len(parts) >= 5 and parts[3] == "pulls" and parts[4].isdigit():
        return f"{web_base}/{full_name}/pull/{parts[4]}"

    return f"{web_base}/{full_name}"


def _shorten_api_url(api_url: str) -> str:
    base = GITHUB_API_BASE.rstrip("/")
    if api_url.startswith(base):
        return api_url[len(base):]
    return api_url


def _record_github_request(
    *,
    status_code: Optional[int],
    duration_ms: int,
    error: bool,
    resp: Optional[httpx.Response] = None,
    exc: Optional[BaseException] = None,
    method: Optional[str] = None,
    url: Optional[str] = None,
) -> None:
    """Log GitHub request metadata and record metrics."""

    log_extra: dict[str, Any] = {
        "status_code": status_code,
        "duration_ms": duration_ms,
        "error": error,
    }
    if method:
        log_extra["method"] = method
    web_url = None
    if url:
        log_extra["url"] = url
        web_url = _derive_github_web_url(url)
        if web_url:
            log_extra["web_url"] = web_url
    if resp is not None:
        log_extra["rate_limit_remaining"] = resp.headers.get("X-RateLimit-Remaining")
    if exc is not None:
        log_extra["exc_type"] = exc.__class__.__name__

    status = status_code if status_code is not None else "ERR"
    msg = f"GitHub API {method or '?'} {_shorten_api_url(url or '')} -> {status} ({duration_ms}ms)"
    if web_url:
        # Keep the link away from the end of the line; some viewers swallow
        # trailing punctuation into the hyperlink.
        msg += f" | web: {web_url} [web]"

    if error:
        GITHUB_LOGGER.warning(msg, extra=log_extra)
    else:
        GITHUB_LOGGER.info(msg, extra=log_extra)

    _record_github_request_metrics(
        status_code=status_code,
        duration_ms=duration_ms,
        error=error,
        resp=resp,
        exc=exc,
    )


__all__ = ["_record_github_request"]
