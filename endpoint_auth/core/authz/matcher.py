"""Endpoint matching against permission nodes.

Decides whether a route identity is granted by a list of permission nodes.
Evaluation runs in two tiers:

1. Exact tier: nodes naming a controller/action for the request method,
   with a controller-wide wildcard node as fallback when no action node
   exists.
2. Regex tier: nodes whose pattern matches ``"<controller>.<action>"``.

A route the matcher cannot identify (no controller or action) is outside
its scope and always granted. An empty node list is always denied.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from endpoint_auth.core.schemas.authz import WILDCARD_ACTION, NodeKind

if TYPE_CHECKING:
    from collections.abc import Sequence

    from endpoint_auth.core.schemas.authz import (
        AnyPermissionNode,
        PermissionNode,
        RegexPermissionNode,
    )

__all__ = ["EndpointMatcher", "RouteIdentity"]


@dataclass(frozen=True, slots=True)
class RouteIdentity:
    """Controller, action and HTTP method of the current request.

    Use :meth:`of` to build a normalized identity; names are lower-cased
    and the method upper-cased.
    """

    controller: str | None
    action: str | None
    method: str | None

    @classmethod
    def of(
        cls, controller: str | None, action: str | None, method: str | None
    ) -> RouteIdentity:
        return cls(
            controller=str(controller).lower() if controller else None,
            action=str(action).lower() if action else None,
            method=str(method).upper() if method else None,
        )

    @property
    def is_monitored(self) -> bool:
        return bool(self.controller) and bool(self.action)

    @property
    def subject(self) -> str:
        """Regex match subject, ``"<controller>.<action>"``."""
        return f"{self.controller}.{self.action}"


class EndpointMatcher:
    """Pure allow/deny evaluation of permission nodes for a route.

    Args:
        controller_suffix: Suffix appended to the route controller when
            looking up a controller-wide wildcard node (e.g. ``"controller"``
            when nodes are named after controller classes).
        wildcard_action: Action marker of controller-wide nodes.

    Example:
        >>> matcher = EndpointMatcher()
        >>> route = RouteIdentity.of("Orders", "List", "get")
        >>> matcher.match(route, [PermissionNode(controller="orders", action="*", is_allow=True)])
        True
    """

    def __init__(self, controller_suffix: str = "", wildcard_action: str = WILDCARD_ACTION) -> None:
        self.controller_suffix = controller_suffix.lower()
        self.wildcard_action = wildcard_action

    def match(self, route: RouteIdentity, nodes: Sequence[AnyPermissionNode]) -> bool:
        """Return True if ``nodes`` grant access to ``route``."""
        if not nodes:
            return False
        if not route.is_monitored:
            return True

        exact = [node for node in nodes if node.kind == NodeKind.EXACT]
        if exact:
            if not route.method:
                return False
            if self._match_exact(route, exact):
                return True

        regex = [node for node in nodes if node.kind == NodeKind.REGEX]
        return self._match_regex(route, regex)

    def _match_exact(self, route: RouteIdentity, nodes: list[PermissionNode]) -> bool:
        candidates = (node for node in nodes if route.method in node.methods)
        found = next(
            (node for node in candidates if self._names_action(node, route)),
            None,
        )
        if found is not None:
            # A matching node that grants nothing defers to the regex tier.
            return found.grants

        wildcard_controller = f"{route.controller}{self.controller_suffix}"
        wildcard = next(
            (
                node
                for node in nodes
                if (node.controller or "").lower() == wildcard_controller
                and node.action == self.wildcard_action
            ),
            None,
        )
        return wildcard is not None and wildcard.grants

    @staticmethod
    def _names_action(node: PermissionNode, route: RouteIdentity) -> bool:
        if not node.controller or node.action is None:
            return False
        return (
            node.controller.lower().startswith(route.controller or "")
            and node.action.lower() == route.action
        )

    @staticmethod
    def _match_regex(route: RouteIdentity, nodes: list[RegexPermissionNode]) -> bool:
        if not nodes:
            return False
        subject = route.subject
        return any(node.grants and node.pattern.search(subject) for node in nodes)
