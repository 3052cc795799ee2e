"""JSON-RPC 2.0 dispatcher for the MCP methods this server speaks.

The dispatcher is transport-agnostic: it takes one decoded JSON-RPC message
and returns the response object (or ``None`` for notifications). The HTTP
route in :mod:`catalog_mcp.http_routes.mcp_endpoint` owns authentication and
body parsing.
"""

from __future__ import annotations

import time
from typing import Any, Callable, Dict, Mapping, Optional

import jsonschema
from jsonschema.exceptions import best_match
from mcp.shared.version import SUPPORTED_PROTOCOL_VERSIONS
from mcp.types import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    LATEST_PROTOCOL_VERSION,
    METHOD_NOT_FOUND,
    CallToolResult,
    ErrorData,
    Implementation,
    InitializeResult,
    ListResourcesResult,
    ListToolsResult,
    ReadResourceResult,
    Resource,
    ResourcesCapability,
    ServerCapabilities,
    TextResourceContents,
    ToolsCapability,
)

from catalog_mcp import __version__
from catalog_mcp.catalog import Catalog
from catalog_mcp.config import BASE_LOGGER, TOOLS_LOGGER, ServerSettings
from catalog_mcp.exceptions import CatalogMCPError, ToolNotFoundError, UsageError
from catalog_mcp.http_clients import GitHubClient
from catalog_mcp.metrics import _record_tool_call
from catalog_mcp.repo_tools._context import ToolContext
from catalog_mcp.repo_tools.catalog_info import describe_entry

from .errors import error_for_exception
from .registry import ToolSpec, build_tool_registry

RESOURCE_URI_PREFIX = "catalog://entries/"

ClientFactory = Callable[[str], GitHubClient]


def _dump(model: Any) -> Dict[str, Any]:
    return model.model_dump(by_alias=True, exclude_none=True, mode="json")


def jsonrpc_result(request_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


def jsonrpc_error(request_id: Any, error: ErrorData) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": _dump(error)}


class _RequestError(Exception):
    """Short-circuits a request with a protocol-level error."""

    def __init__(self, error: ErrorData) -> None:
        super().__init__(error.message)
        self.error = error


class RequestDispatcher:
    def __init__(
        self,
        settings: ServerSettings,
        catalog: Catalog,
        *,
        client_factory: Optional[ClientFactory] = None,
    ) -> None:
        self.settings = settings
        self.catalog = catalog
        self.tools: Dict[str, ToolSpec] = build_tool_registry(settings, catalog)
        self._client_factory: ClientFactory = client_factory or GitHubClient
        self._methods = {
            "initialize": self._initialize,
            "ping": self._ping,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
            "resources/list": self._list_resources,
            "resources/read": self._read_resource,
        }

    async def handle(self, message: Any) -> Optional[Dict[str, Any]]:
        """Process one JSON-RPC message and return the response, if any."""

        request_id = message.get("id") if isinstance(message, dict) else None
        if (
            not isinstance(message, dict)
            or message.get("jsonrpc") != "2.0"
            or not isinstance(message.get("method"), str)
        ):
            return jsonrpc_error(
                request_id, ErrorData(code=INVALID_REQUEST, message="Invalid Request")
            )

        method = message["method"]
        is_notification = "id" not in message
        params = message.get("params") or {}

        if is_notification:
            BASE_LOGGER.debug("Received notification %s", method)
            return None

        handler = self._methods.get(method)
        if handler is None:
            return jsonrpc_error(
                request_id,
                ErrorData(code=METHOD_NOT_FOUND, message=f"Method not found: {method}"),
            )
        if not isinstance(params, dict):
            return jsonrpc_error(
                request_id, ErrorData(code=INVALID_PARAMS, message="params must be an object")
            )

        try:
            result = await handler(params)
        except _RequestError as exc:
            return jsonrpc_error(request_id, exc.error)
        return jsonrpc_result(request_id, result)

    # Protocol methods
    # ------------------------------------------------------------------

    async def _initialize(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        requested = params.get("protocolVersion")
        version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        client_info = params.get("clientInfo")
        if not isinstance(client_info, dict):
            client_info = {}
        BASE_LOGGER.info(
            "Initialize from %s (protocol %s)", client_info.get("name", "unknown client"), version
        )
        result = InitializeResult(
            protocolVersion=version,
            capabilities=ServerCapabilities(
                tools=ToolsCapability(listChanged=False),
                resources=ResourcesCapability(subscribe=False, listChanged=False),
            ),
            serverInfo=Implementation(name=self.settings.server_name, version=__version__),
            instructions=self.settings.server_description,
        )
        return _dump(result)

    async def _ping(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return {}

    async def _list_tools(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        return _dump(ListToolsResult(tools=[spec.as_mcp_tool() for spec in self.tools.values()]))

    async def _list_resources(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        resources = [
            Resource(
                uri=f"{RESOURCE_URI_PREFIX}{entry.name}",
                name=entry.name,
                description=entry.description or None,
                mimeType="text/markdown",
            )
            for entry in self.catalog
        ]
        return _dump(ListResourcesResult(resources=resources))

    async def _read_resource(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        uri = params.get("uri")
        entry = None
        if isinstance(uri, str) and uri.startswith(RESOURCE_URI_PREFIX):
            entry = self.catalog.find(uri[len(RESOURCE_URI_PREFIX):])
        if entry is None:
            raise _RequestError(
                ErrorData(code=INVALID_PARAMS, message=f"Resource not found: {uri}")
            )
        contents = TextResourceContents(
            uri=uri, mimeType="text/markdown", text=describe_entry(entry)
        )
        return _dump(ReadResourceResult(contents=[contents]))

    async def _call_tool(self, params: Mapping[str, Any]) -> Dict[str, Any]:
        name = params.get("name")
        arguments = params.get("arguments")
        if arguments is None:
            arguments = {}

        spec = self.tools.get(name) if isinstance(name, str) else None
        started = time.time()
        errored = True
        try:
            if spec is None:
                raise ToolNotFoundError(name)
            if not isinstance(arguments, dict):
                raise UsageError("Tool arguments must be an object")
            TOOLS_LOGGER.detailed("Tool %s called with %s", name, sorted(arguments))
            result = await self._run_tool(spec, arguments)
            errored = bool(result.isError)
        except (CatalogMCPError, jsonschema.ValidationError) as exc:
            TOOLS_LOGGER.warning("Tool %s failed: %s", name, exc)
            raise _RequestError(error_for_exception(exc)) from exc
        except Exception as exc:
            BASE_LOGGER.exception("Unexpected error while running tool %s", name)
            raise _RequestError(error_for_exception(exc)) from exc
        finally:
            if spec is not None:
                _record_tool_call(
                    spec.name,
                    write_action=spec.write_action,
                    duration_ms=int((time.time() - started) * 1000),
                    errored=errored,
                )
        return _dump(result)

    async def _run_tool(self, spec: ToolSpec, arguments: Dict[str, Any]) -> CallToolResult:
        config_name: Optional[str] = None
        if spec.requires_config:
            if self.settings.is_single_repo:
                config_name = self.settings.single_config_name
            else:
                config_name = arguments.get("config_name")
                if not config_name:
                    raise UsageError(
                        "Missing required parameter: config_name. "
                        f"Available configs: {', '.join(self.catalog.names)}"
                    )

        validator_cls = jsonschema.validators.validator_for(spec.input_schema)
        error = best_match(validator_cls(spec.input_schema).iter_errors(arguments))
        if error is not None:
            raise error

        known = spec.input_schema.get("properties", {})
        kwargs = {key: value for key, value in arguments.items() if key in known}

        if not spec.requires_config:
            return await spec.executor(ToolContext(self.settings, self.catalog), **kwargs)

        kwargs.pop("config_name", None)
        credentials = self.catalog.credentials_for(config_name)
        ctx = ToolContext(
            settings=self.settings,
            catalog=self.catalog,
            config_name=config_name,
            credentials=credentials,
            client=self._client_factory(credentials.token),
        )
        return await spec.executor(ctx, **kwargs)


__all__ = [
    "RESOURCE_URI_PREFIX",
    "RequestDispatcher",
    "jsonrpc_error",
    "jsonrpc_result",
]
