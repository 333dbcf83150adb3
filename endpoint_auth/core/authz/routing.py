"""Route identity resolution and route-declared permission nodes.

FastAPI has no controllers, so the identity of a request is derived from,
in order:

1. Path parameters named ``controller`` and ``action`` (MVC-style
   templates such as ``/api/{controller}/{action}``).
2. Metadata attached to the endpoint with :func:`auth_endpoint`.
3. The route's first tag (controller) and the route name (action).

Endpoints decorated with :func:`auth_endpoint` also declare a permission
node; :func:`collect_watch_endpoints` gathers them into the default
source's watch-list.

Example:
    >>> router = APIRouter(tags=["orders"])
    >>>
    >>> @router.get("/orders")
    ... @auth_endpoint(action="list", is_allow=True)
    ... async def list_orders(): ...
    >>>
    >>> collect_watch_endpoints(router.routes)
    [PermissionNode(controller='orders', action='list', methods=frozenset({'GET'}), ...)]
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any, TypeVar

from fastapi.routing import APIRoute

from endpoint_auth.core.authz.matcher import RouteIdentity
from endpoint_auth.core.schemas.authz import PermissionNode

if TYPE_CHECKING:
    from starlette.requests import Request
    from starlette.routing import BaseRoute

__all__ = [
    "AUTH_ENDPOINT_ATTR",
    "RouteIdentityProvider",
    "auth_endpoint",
    "collect_watch_endpoints",
    "route_identity_from_request",
]

AUTH_ENDPOINT_ATTR = "__endpoint_auth__"

RouteIdentityProvider = Callable[["Request"], RouteIdentity]

F = TypeVar("F", bound=Callable[..., Any])


def auth_endpoint(
    *,
    controller: str | None = None,
    action: str | None = None,
    methods: Iterable[str] | None = None,
    is_allow: bool = False,
    allow_guest: bool = False,
    access_code: str | None = None,
) -> Callable[[F], F]:
    """Attach permission-node metadata to a route handler.

    Omitted ``controller`` and ``action`` default to the route's first tag
    and the route name; omitted ``methods`` default to the route's methods.
    Apply it below the router decorator so FastAPI registers the annotated
    function.
    """
    metadata = {
        "controller": controller,
        "action": action,
        "methods": frozenset(m.upper() for m in methods) if methods else None,
        "is_allow": is_allow,
        "allow_guest": allow_guest,
        "access_code": access_code,
    }

    def decorator(func: F) -> F:
        setattr(func, AUTH_ENDPOINT_ATTR, metadata)
        return func

    return decorator


def _endpoint_metadata(route: Any) -> dict[str, Any]:
    endpoint = getattr(route, "endpoint", None)
    return getattr(endpoint, AUTH_ENDPOINT_ATTR, None) or {}


def _default_controller(route: Any) -> str | None:
    tags = getattr(route, "tags", None)
    if tags:
        return str(tags[0])
    return None


def route_identity_from_request(request: Request) -> RouteIdentity:
    """Derive the controller/action/method identity of ``request``.

    Returns an unmonitored identity when no controller or action can be
    resolved (e.g. the request matched no route).
    """
    params = request.path_params
    controller = params.get("controller")
    action = params.get("action")

    route = request.scope.get("route")
    if route is not None and (not controller or not action):
        metadata = _endpoint_metadata(route)
        controller = controller or metadata.get("controller") or _default_controller(route)
        action = action or metadata.get("action") or getattr(route, "name", None)

    return RouteIdentity.of(controller, action, request.method)


def collect_watch_endpoints(routes: Iterable[BaseRoute]) -> list[PermissionNode]:
    """Build permission nodes from handlers decorated with :func:`auth_endpoint`.

    Routes without metadata, and routes whose controller cannot be
    resolved, are skipped.
    """
    nodes: list[PermissionNode] = []
    for route in routes:
        if not isinstance(route, APIRoute):
            continue
        metadata = _endpoint_metadata(route)
        if not metadata:
            continue
        controller = metadata.get("controller") or _default_controller(route)
        if not controller:
            continue
        nodes.append(
            PermissionNode(
                controller=controller,
                action=metadata.get("action") or route.name,
                methods=metadata.get("methods") or route.methods,
                is_allow=metadata["is_allow"],
                allow_guest=metadata["allow_guest"],
                access_code=metadata.get("access_code"),
            )
        )
    return nodes
