"""Pytest configuration and shared fixtures.

Organization:
    - Environment: keep settings independent of the developer machine
    - Request Fixtures: build Starlette requests with route metadata
    - Engine Fixtures: settings and engine factories
    - Node Fixtures: common permission-node lists

When adding new features:
    1. Add fixtures to the appropriate section below
    2. Use @pytest.fixture with clear docstrings
    3. Make fixtures composable (fixtures can depend on other fixtures)
"""

from __future__ import annotations

import os
from types import SimpleNamespace
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import pytest
from starlette.requests import Request

from endpoint_auth.core.authz import AuthorizationEngine
from endpoint_auth.core.schemas.authz import AccessSource, PermissionNode, RegexPermissionNode
from endpoint_auth.core.settings import AuthzSettings, clear_all_caches

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

# Keep YAML config and .env files out of the test run
os.environ["AUTHZ_CONFIG_DIR"] = "/nonexistent/authz-conf"
os.environ["LOGGING_CONFIG_DIR"] = "/nonexistent/logging-conf"


@pytest.fixture(autouse=True)
def _reset_settings_cache() -> Iterator[None]:
    """Clear cached settings before and after each test."""
    clear_all_caches()
    yield
    clear_all_caches()


# ============================================================================
# Request Fixtures
# ============================================================================


def build_request(
    method: str = "GET",
    path: str = "/",
    *,
    headers: dict[str, str] | None = None,
    query: dict[str, str] | None = None,
    cookies: dict[str, str] | None = None,
    path_params: dict[str, Any] | None = None,
    route: Any = None,
) -> Request:
    """Build a Starlette request from an ASGI scope.

    Args:
        method: HTTP method ("" for a request without a method).
        path: Request path.
        headers: Request headers.
        query: Query string parameters.
        cookies: Cookies, sent as a Cookie header.
        path_params: Path parameters as resolved by the router.
        route: Object placed in ``scope["route"]`` (tags/name/endpoint).
    """
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    if cookies:
        cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
        raw_headers.append((b"cookie", cookie_header.encode()))

    scope: dict[str, Any] = {
        "type": "http",
        "method": method,
        "path": path,
        "root_path": "",
        "scheme": "http",
        "server": ("testserver", 80),
        "query_string": urlencode(query or {}).encode(),
        "headers": raw_headers,
        "path_params": path_params or {},
    }
    if route is not None:
        scope["route"] = route
    return Request(scope)


def fake_route(
    *, tags: list[str] | None = None, name: str | None = None, endpoint: Any = None
) -> SimpleNamespace:
    """Stand-in for a matched FastAPI route."""
    return SimpleNamespace(tags=tags or [], name=name, endpoint=endpoint)


@pytest.fixture
def make_request() -> Callable[..., Request]:
    """Factory building requests, see ``build_request``."""
    return build_request


@pytest.fixture
def make_route() -> Callable[..., SimpleNamespace]:
    """Factory for matched-route stand-ins, see ``fake_route``."""
    return fake_route


@pytest.fixture
def orders_list_request() -> Request:
    """GET request routed to controller='Orders', action='List'."""
    return build_request(
        "GET",
        "/api/Orders/List",
        headers={"Authorization": "token-123"},
        path_params={"controller": "Orders", "action": "List"},
    )


# ============================================================================
# Engine Fixtures
# ============================================================================


@pytest.fixture
def make_settings() -> Callable[..., AuthzSettings]:
    """Factory for AuthzSettings with test-friendly defaults."""

    def _make(**overrides: Any) -> AuthzSettings:
        values: dict[str, Any] = {
            "access_sources": [AccessSource.CACHE, AccessSource.DEFAULT],
            "slow_source_threshold_ms": 0,
        }
        values.update(overrides)
        return AuthzSettings(**values)

    return _make


@pytest.fixture
def make_engine(make_settings: Callable[..., AuthzSettings]) -> Callable[..., AuthorizationEngine]:
    """Factory for engines; settings overrides and engine kwargs are split by name."""
    engine_kwargs = {"handlers", "watch_endpoints", "registry", "matcher", "route_provider"}

    def _make(**kwargs: Any) -> AuthorizationEngine:
        engine_args = {k: kwargs.pop(k) for k in list(kwargs) if k in engine_kwargs}
        return AuthorizationEngine(make_settings(**kwargs), **engine_args)

    return _make


# ============================================================================
# Node Fixtures
# ============================================================================


@pytest.fixture
def orders_wildcard_node() -> PermissionNode:
    """Controller-wide GET grant for 'orders'."""
    return PermissionNode(controller="orders", action="*", methods={"GET"}, is_allow=True)


@pytest.fixture
def reports_regex_node() -> RegexPermissionNode:
    """Guest grant for every 'reports' action."""
    return RegexPermissionNode(pattern=r"^reports\.", allow_guest=True)
