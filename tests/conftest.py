import asyncio
import inspect
from typing import Any, Dict, List, Optional, Tuple

import pytest

from catalog_mcp.catalog import Catalog, ConfigurationEntry
from catalog_mcp.config import ServerSettings
from catalog_mcp.exceptions import RemoteAPIError
from catalog_mcp.http_clients import GitHubClient
from catalog_mcp.metrics import _reset_metrics_for_tests
from catalog_mcp.repo_tools._context import ToolContext


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test to run in event loop")


def pytest_pyfunc_call(pyfuncitem):
    if "asyncio" not in pyfuncitem.keywords:
        return None

    test_func = pyfuncitem.obj
    if not inspect.iscoroutinefunction(test_func):
        return None

    wanted = inspect.signature(test_func).parameters
    kwargs = {name: value for name, value in pyfuncitem.funcargs.items() if name in wanted}

    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(test_func(**kwargs))
    finally:
        loop.close()
        asyncio.set_event_loop(None)

    return True


def not_found() -> RemoteAPIError:
    return RemoteAPIError(404, "Not Found", '{"message":"Not Found"}')


def branch_collision() -> RemoteAPIError:
    return RemoteAPIError(422, "Unprocessable Entity", '{"message":"Reference already exists"}')


class Sequence(list):
    """Responses consumed one per call."""


class FakeGitHub(GitHubClient):
    """In-memory GitHub keyed by ``(METHOD, path)``.

    A route value may be a payload, an exception to raise, a callable taking
    ``(params, json_body)``, or a :class:`Sequence` consumed one item per
    call. Unknown routes answer 404.
    """

    def __init__(self, routes: Optional[Dict[Tuple[str, str], Any]] = None) -> None:
        super().__init__("fake-token", client_factory=lambda: None)
        self.routes: Dict[Tuple[str, str], Any] = dict(routes or {})
        self.calls: List[Tuple[str, str, Optional[dict], Optional[dict]]] = []

    async def request(self, method, path, *, params=None, json_body=None):
        method = method.upper()
        self.calls.append((method, path, params, json_body))
        key = (method, path)
        if key not in self.routes:
            raise not_found()

        value = self.routes[key]
        if isinstance(value, Sequence):
            if not value:
                raise AssertionError(f"No more responses queued for {key}")
            value = value.pop(0)
        if callable(value) and not isinstance(value, BaseException):
            value = value(params, json_body)
        if isinstance(value, BaseException):
            raise value
        return value

    def calls_to(self, method: str, path: Optional[str] = None) -> list:
        return [
            call
            for call in self.calls
            if call[0] == method and (path is None or call[1] == path)
        ]


@pytest.fixture(autouse=True)
def _fresh_metrics():
    _reset_metrics_for_tests()
    yield
    _reset_metrics_for_tests()


@pytest.fixture
def settings() -> ServerSettings:
    return ServerSettings(server_token="server-secret", github_token="gh-token")


@pytest.fixture
def fake_github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
def make_ctx(settings, fake_github):
    """Build a ToolContext for one catalog entry backed by ``fake_github``."""

    def _make(
        repo_path: str,
        *,
        name: str = "target",
        tool_settings: Optional[ServerSettings] = None,
    ) -> ToolContext:
        catalog = Catalog(
            [ConfigurationEntry(name=name, description=f"{name} entry", github_repo_path=repo_path)],
            default_token="gh-token",
        )
        return ToolContext(
            settings=tool_settings or settings,
            catalog=catalog,
            config_name=name,
            credentials=catalog.credentials_for(name),
            client=fake_github,
        )

    return _make
