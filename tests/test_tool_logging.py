import logging

from catalog_mcp import tool_logging
from catalog_mcp.metrics import _metrics_snapshot, _record_tool_call


def test_contents_url_maps_to_blob_with_ref():
    url = "https://api.github.com/repos/o/r/contents/docs/app.md?ref=dev"

    assert tool_logging._derive_github_web_url(url) == "https://github.com/o/r/blob/dev/docs/app.md"


def test_pull_and_repo_urls():
    assert tool_logging._derive_github_web_url("https://api.github.com/repos/o/r/pulls/12") == (
        "https://github.com/o/r/pull/12"
    )
    assert tool_logging._derive_github_web_url("https://api.github.com/repos/o/r/git/refs") == (
        "https://github.com/o/r"
    )
    assert tool_logging._derive_github_web_url("https://api.github.com/user") is None


def test_request_line_is_logged_and_counted(caplog):
    caplog.set_level(logging.INFO, logger="catalog_mcp.github_client")

    tool_logging._record_github_request(
        method="GET",
        url="https://api.github.com/repos/o/r/contents/a.md",
        status_code=200,
        duration_ms=12,
        error=False,
    )

    record = caplog.records[-1]
    assert record.levelno == logging.INFO
    assert record.getMessage() == (
        "GitHub API GET /repos/o/r/contents/a.md -> 200 (12ms) "
        "| web: https://github.com/o/r/blob/main/a.md [web]"
    )
    assert record.status_code == 200
    assert _metrics_snapshot()["github"]["requests_total"] == 1


def test_failed_request_logs_warning(caplog):
    caplog.set_level(logging.INFO, logger="catalog_mcp.github_client")

    tool_logging._record_github_request(
        method="POST",
        url="https://api.github.com/user",
        status_code=None,
        duration_ms=3,
        error=True,
        exc=TimeoutError("slow"),
    )

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert "-> ERR (3ms)" in record.getMessage()
    assert record.exc_type == "TimeoutError"


def test_tool_call_metrics_accumulate():
    _record_tool_call("t", write_action=True, duration_ms=5, errored=False)
    _record_tool_call("t", write_action=True, duration_ms=-1, errored=True)

    assert _metrics_snapshot()["tools"]["t"] == {
        "calls_total": 2,
        "errors_total": 1,
        "write_calls_total": 2,
        "latency_ms_sum": 5,
    }
