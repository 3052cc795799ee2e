"""Map tool failures onto JSON-RPC error objects.

Validation problems (bad paths, folder escapes, unknown configurations,
schema violations) are the caller's fault and become ``INVALID_PARAMS``.
Remote and write failures become ``INTERNAL_ERROR`` with the failing
operation, path and folder restriction in ``data``. Stack traces never leave
the process.
"""

from __future__ import annotations

from typing import Any, Dict

import jsonschema
from mcp.types import INTERNAL_ERROR, INVALID_PARAMS, METHOD_NOT_FOUND, ErrorData

from catalog_mcp.exceptions import (
    AccessDeniedError,
    BranchAllocationError,
    ConfigurationNotFoundError,
    InvalidPathError,
    RemoteAPIError,
    ToolExecutionError,
    ToolNotFoundError,
    UsageError,
)

_VALIDATION_ERRORS = (
    InvalidPathError,
    AccessDeniedError,
    ConfigurationNotFoundError,
    UsageError,
)


def _summarize_exception(exc: BaseException) -> str:
    """Create a short human-readable message."""

    if isinstance(exc, jsonschema.ValidationError):
        path = list(exc.path)
        base_message = exc.message or exc.__class__.__name__
        if path:
            path_display = " → ".join(str(p) for p in path)
            return f"{base_message} (at {path_display})"
        return base_message

    return str(exc) or exc.__class__.__name__


def _error_data(exc: BaseException) -> Dict[str, Any]:
    data: Dict[str, Any] = {"type": exc.__class__.__name__}
    if isinstance(exc, ConfigurationNotFoundError):
        data["config_name"] = exc.config_name
        if exc.available:
            data["available_configs"] = exc.available
    elif isinstance(exc, AccessDeniedError):
        data["path"] = exc.path
        data["folder"] = exc.folder
    elif isinstance(exc, InvalidPathError) and exc.value is not None:
        data["value"] = exc.value
    elif isinstance(exc, ToolExecutionError):
        data["operation"] = exc.operation
        if exc.path:
            data["path"] = exc.path
        if exc.folder:
            data["folder"] = exc.folder
        if exc.status_code is not None:
            data["status_code"] = exc.status_code
    elif isinstance(exc, RemoteAPIError) and exc.status_code is not None:
        data["status_code"] = exc.status_code
    elif isinstance(exc, BranchAllocationError):
        data["attempts"] = exc.attempts
    elif isinstance(exc, jsonschema.ValidationError) and exc.path:
        data["field"] = ".".join(str(p) for p in exc.path)
    return data


def error_for_exception(exc: BaseException) -> ErrorData:
    """Return the JSON-RPC error for an exception raised by a tool call."""

    if isinstance(exc, ToolNotFoundError):
        code = METHOD_NOT_FOUND
        message = str(exc)
    elif isinstance(exc, _VALIDATION_ERRORS + (jsonschema.ValidationError,)):
        code = INVALID_PARAMS
        message = _summarize_exception(exc)
    elif isinstance(exc, (ToolExecutionError, RemoteAPIError, BranchAllocationError)):
        code = INTERNAL_ERROR
        message = _summarize_exception(exc)
    else:
        return ErrorData(code=INTERNAL_ERROR, message="Tool execution failed")
    return ErrorData(code=code, message=message, data=_error_data(exc))


__all__ = ["error_for_exception"]
