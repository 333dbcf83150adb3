"""Authorization decision engine.

The engine is the single entry point used by the request pipeline:

    credential locator -> route identity -> source evaluator -> verdict

One engine is created per application and shared by every request. The
only mutable state it holds is the endpoint registry.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from endpoint_auth.core.authz.credentials import extract_credential
from endpoint_auth.core.authz.matcher import EndpointMatcher
from endpoint_auth.core.authz.registry import EndpointRegistry
from endpoint_auth.core.authz.routing import route_identity_from_request
from endpoint_auth.core.authz.sources import (
    AuthorizationDecision,
    SourceChain,
    SourceEvaluator,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from starlette.requests import Request

    from endpoint_auth.core.authz.matcher import RouteIdentity
    from endpoint_auth.core.authz.routing import RouteIdentityProvider
    from endpoint_auth.core.authz.sources import EndpointExtractor
    from endpoint_auth.core.schemas.authz import AccessSource, AnyPermissionNode
    from endpoint_auth.core.settings.authz import AuthzSettings

__all__ = ["AuthorizationEngine"]

logger = logging.getLogger(__name__)


class AuthorizationEngine:
    """Decides whether a request may reach its route handler.

    Args:
        settings: Authorization settings (source order, credential location,
            matching conventions, watch-list).
        handlers: Extraction handlers bound to the ``cache`` and
            ``database`` sources.
        watch_endpoints: Extra watch-list nodes, appended to the configured ones.
        registry: Shared endpoint registry; a new one is created when omitted.
        matcher: Endpoint matcher; built from settings when omitted.
        route_provider: Resolves the route identity of a request.

    Example:
        >>> engine = AuthorizationEngine(
        ...     get_authz_settings(),
        ...     handlers={AccessSource.DATABASE: load_user_endpoints},
        ... )
        >>> allowed = await engine.authorize(request)
    """

    def __init__(
        self,
        settings: AuthzSettings,
        *,
        handlers: Mapping[AccessSource, EndpointExtractor] | None = None,
        watch_endpoints: Iterable[AnyPermissionNode] = (),
        registry: EndpointRegistry | None = None,
        matcher: EndpointMatcher | None = None,
        route_provider: RouteIdentityProvider | None = None,
    ) -> None:
        self.settings = settings
        if registry is None:
            registry = EndpointRegistry(namespace=settings.registry_namespace)
        self._registry = registry
        self._matcher = matcher or EndpointMatcher(
            controller_suffix=settings.controller_suffix,
            wildcard_action=settings.wildcard_action,
        )
        self._chain = SourceChain.from_settings(
            settings, handlers=handlers, watch_endpoints=watch_endpoints
        )
        self._evaluator = SourceEvaluator(self._chain, self._matcher, settings)
        self._route_provider = route_provider or route_identity_from_request

        logger.debug(
            "Authorization engine initialized",
            extra={
                "sources": [s.value for s in self._chain.sources],
                "watch_endpoints": len(self._chain.watch_endpoints),
                "credential_location": settings.source_location.value,
            },
        )

    @property
    def registry(self) -> EndpointRegistry:
        return self._registry

    @property
    def chain(self) -> SourceChain:
        return self._chain

    @property
    def matcher(self) -> EndpointMatcher:
        return self._matcher

    def credential_key(self, request: Request) -> str:
        """Read the credential key from the configured location.

        Raises:
            UnsupportedCredentialLocationError: If the location is ``path``.
        """
        return extract_credential(request, self.settings.source_location, self.settings.source_key)

    def route_identity(self, request: Request) -> RouteIdentity:
        """Resolve the controller/action/method identity of ``request``."""
        return self._route_provider(request)

    async def decide(self, request: Request) -> AuthorizationDecision:
        """Evaluate the source chain for ``request`` and return the full decision.

        Raises:
            UnsupportedCredentialLocationError: Before any source is consulted
                when credentials are configured to come from the path.
        """
        if not self.settings.enabled:
            return AuthorizationDecision(allowed=True)

        credential_key = self.credential_key(request)
        route = self.route_identity(request)
        decision = await self._evaluator.evaluate(request, credential_key, route)

        logger.debug(
            "Authorization decision",
            extra={
                "path": request.url.path,
                "controller": route.controller,
                "action": route.action,
                "method": route.method,
                "allowed": decision.allowed,
                "source": decision.source.value if decision.source else None,
            },
        )
        return decision

    async def authorize(self, request: Request) -> bool:
        """Return True if ``request`` may proceed to its route handler."""
        decision = await self.decide(request)
        return decision.allowed

    def register_access_code(self, access_code: str, is_accepted: bool) -> None:
        """Seed or override the cached verdict of an access code."""
        self._registry.register(access_code, is_accepted)

    def lookup_access_code(self, access_code: str) -> tuple[bool, bool]:
        """Return ``(verdict, found)`` for an access code."""
        return self._registry.lookup(access_code)
