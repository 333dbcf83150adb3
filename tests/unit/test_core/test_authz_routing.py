"""Tests for route identity resolution and route-declared permission nodes."""

from __future__ import annotations

from types import SimpleNamespace
from typing import TYPE_CHECKING

from fastapi import APIRouter
import pytest

from endpoint_auth.core.authz.routing import (
    AUTH_ENDPOINT_ATTR,
    auth_endpoint,
    collect_watch_endpoints,
    route_identity_from_request,
)
from endpoint_auth.core.schemas.authz import PermissionNode

if TYPE_CHECKING:
    from collections.abc import Callable

    from starlette.requests import Request


@pytest.mark.unit
class TestRouteIdentityFromRequest:
    def test_path_params(self, orders_list_request: Request) -> None:
        route = route_identity_from_request(orders_list_request)
        assert (route.controller, route.action, route.method) == ("orders", "list", "GET")

    def test_route_tag_and_name(
        self,
        make_request: Callable[..., Request],
        make_route: Callable[..., SimpleNamespace],
    ) -> None:
        request = make_request(
            "delete", "/orders/1", route=make_route(tags=["Orders", "admin"], name="delete_order")
        )
        route = route_identity_from_request(request)
        assert (route.controller, route.action, route.method) == ("orders", "delete_order", "DELETE")

    def test_endpoint_metadata_wins_over_route(
        self,
        make_request: Callable[..., Request],
        make_route: Callable[..., SimpleNamespace],
    ) -> None:
        @auth_endpoint(controller="billing", action="refund")
        async def handler() -> None: ...

        request = make_request(
            "POST", "/refunds", route=make_route(tags=["payments"], name="handler", endpoint=handler)
        )
        route = route_identity_from_request(request)
        assert (route.controller, route.action) == ("billing", "refund")

    def test_path_params_win_over_metadata(
        self,
        make_request: Callable[..., Request],
        make_route: Callable[..., SimpleNamespace],
    ) -> None:
        request = make_request(
            "GET",
            "/api/Orders/List",
            path_params={"controller": "Orders", "action": "List"},
            route=make_route(tags=["other"], name="dispatch"),
        )
        route = route_identity_from_request(request)
        assert (route.controller, route.action) == ("orders", "list")

    def test_partial_path_params_completed_from_route(
        self,
        make_request: Callable[..., Request],
        make_route: Callable[..., SimpleNamespace],
    ) -> None:
        request = make_request(
            "GET",
            "/orders/export",
            path_params={"action": "Export"},
            route=make_route(tags=["orders"], name="dispatch"),
        )
        route = route_identity_from_request(request)
        assert (route.controller, route.action) == ("orders", "export")

    def test_unrouted_request_is_unmonitored(self, make_request: Callable[..., Request]) -> None:
        route = route_identity_from_request(make_request("GET", "/missing"))
        assert not route.is_monitored
        assert route.method == "GET"

    def test_untagged_route_is_unmonitored(
        self,
        make_request: Callable[..., Request],
        make_route: Callable[..., SimpleNamespace],
    ) -> None:
        request = make_request("GET", "/ping", route=make_route(name="ping"))
        route = route_identity_from_request(request)
        assert route.controller is None
        assert not route.is_monitored


@pytest.mark.unit
class TestAuthEndpoint:
    def test_attaches_metadata(self) -> None:
        @auth_endpoint(action="list", methods=["get"], is_allow=True, access_code="orders.list")
        def handler() -> str:
            return "ok"

        metadata = getattr(handler, AUTH_ENDPOINT_ATTR)
        assert metadata["action"] == "list"
        assert metadata["methods"] == frozenset({"GET"})
        assert metadata["is_allow"] is True
        assert metadata["access_code"] == "orders.list"
        assert handler() == "ok"


@pytest.mark.unit
class TestCollectWatchEndpoints:
    def test_collects_decorated_routes(self) -> None:
        router = APIRouter(tags=["orders"])

        @router.get("/orders")
        @auth_endpoint(action="list", allow_guest=True)
        async def list_orders() -> list[str]:
            return []

        @router.delete("/orders/{order_id}")
        @auth_endpoint(access_code="orders.delete")
        async def delete_order(order_id: int) -> None: ...

        @router.get("/orders/stats")
        async def order_stats() -> dict[str, int]:
            return {}

        nodes = collect_watch_endpoints(router.routes)

        assert nodes == [
            PermissionNode(controller="orders", action="list", methods={"GET"}, allow_guest=True),
            PermissionNode(
                controller="orders",
                action="delete_order",
                methods={"DELETE"},
                access_code="orders.delete",
            ),
        ]

    def test_explicit_controller_and_methods(self) -> None:
        router = APIRouter()

        @router.api_route("/sync", methods=["GET", "POST"])
        @auth_endpoint(controller="jobs", action="sync", methods=["POST"], is_allow=True)
        async def sync() -> None: ...

        (node,) = collect_watch_endpoints(router.routes)

        assert node.controller == "jobs"
        assert node.methods == frozenset({"POST"})

    def test_skips_routes_without_controller(self) -> None:
        router = APIRouter()

        @router.get("/untagged")
        @auth_endpoint(action="untagged", is_allow=True)
        async def untagged() -> None: ...

        assert collect_watch_endpoints(router.routes) == []
