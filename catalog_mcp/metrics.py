"""In-process metrics registry for catalog tools and GitHub requests."""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx


def _new_metrics_state() -> Dict[str, Any]:
    return {
        "tools": {},
        "github": {
            "requests_total": 0,
            "errors_total": 0,
            "rate_limit_events_total": 0,
            "timeouts_total": 0,
        },
    }


_METRICS: Dict[str, Any] = _new_metrics_state()


def _reset_metrics_for_tests() -> None:
    """Reset in-process metrics; intended for tests."""

    _METRICS.clear()
    _METRICS.update(_new_metrics_state())


def _record_tool_call(
    tool_name: str,
    *,
    write_action: bool,
    duration_ms: int,
    errored: bool,
) -> None:
    bucket = _METRICS["tools"].setdefault(
        tool_name,
        {
            "calls_total": 0,
            "errors_total": 0,
            "write_calls_total": 0,
            "latency_ms_sum": 0,
        },
    )
    bucket["calls_total"] += 1
    if write_action:
        bucket["write_calls_total"] += 1
    bucket["latency_ms_sum"] += max(0, int(duration_ms))
    if errored:
        bucket["errors_total"] += 1


def _is_rate_limited(resp: httpx.Response) -> bool:
    if resp.status_code == 429:
        return True
    remaining = resp.headers.get("X-RateLimit-Remaining")
    if remaining is None:
        return False
    try:
        return int(remaining) <= 0
    except ValueError:
        return False


def _record_github_request(
    *,
    status_code: Optional[int],
    duration_ms: int,
    error: bool,
    resp: Optional[httpx.Response] = None,
    exc: Optional[BaseException] = None,
) -> None:
    github_bucket = _METRICS["github"]
    github_bucket["requests_total"] += 1
    if error:
        github_bucket["errors_total"] += 1
    if resp is not None and _is_rate_limited(resp):
        github_bucket["rate_limit_events_total"] += 1
    if isinstance(exc, httpx.TimeoutException):
        github_bucket["timeouts_total"] += 1


def _metrics_snapshot() -> Dict[str, Any]:
    """Return a JSON-safe copy of the registry for ``/healthz``."""

    return {
        "tools": {name: dict(bucket) for name, bucket in _METRICS["tools"].items()},
        "github": dict(_METRICS["github"]),
    }


__all__ = [
    "_metrics_snapshot",
    "_record_github_request",
    "_record_tool_call",
    "_reset_metrics_for_tests",
]
