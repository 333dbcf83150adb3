"""Endpoint authorization engine.

Decides whether a request may reach its route handler by consulting an
ordered chain of authorization sources. Each source either defers or
yields permission nodes that the endpoint matcher resolves into a verdict.

Architecture:
    ┌────────────┐   ┌──────────────┐   ┌─────────────────────────────┐
    │ credential │──►│ route        │──►│ source evaluator            │
    │ locator    │   │ identity     │   │  auth_center → cache →      │
    └────────────┘   └──────────────┘   │  database → default         │
                                        │        │                    │
                                        │        ▼                    │
                                        │  endpoint matcher           │
                                        │  (exact → wildcard → regex) │
                                        └─────────────────────────────┘

Components:
    - AuthorizationEngine: Facade invoked once per request
    - SourceChain / SourceEvaluator: Ordered, short-circuiting source walk
    - EndpointMatcher / RouteIdentity: Tiered permission-node matching
    - EndpointRegistry: Process-wide access-code verdict cache
    - extract_credential: Reads the credential key from query/header/cookie
    - auth_endpoint / collect_watch_endpoints: Route-declared permission nodes

Example:
    >>> from endpoint_auth.core.authz import AuthorizationEngine
    >>> from endpoint_auth.core.schemas.authz import AccessSource
    >>>
    >>> async def cached_endpoints(credential_key, request, options):
    ...     return await cache.get_nodes(credential_key)  # None defers
    >>>
    >>> engine = AuthorizationEngine(
    ...     settings,
    ...     handlers={AccessSource.CACHE: cached_endpoints},
    ... )
    >>> await engine.authorize(request)
    True
"""

from __future__ import annotations

from endpoint_auth.core.authz.credentials import extract_credential
from endpoint_auth.core.authz.engine import AuthorizationEngine
from endpoint_auth.core.authz.matcher import EndpointMatcher, RouteIdentity
from endpoint_auth.core.authz.registry import DEFAULT_REGISTRY_NAMESPACE, EndpointRegistry
from endpoint_auth.core.authz.routing import (
    RouteIdentityProvider,
    auth_endpoint,
    collect_watch_endpoints,
    route_identity_from_request,
)
from endpoint_auth.core.authz.sources import (
    AuthorizationDecision,
    EndpointExtractor,
    SourceChain,
    SourceEvaluator,
    SourceTiming,
)

__all__ = [
    "DEFAULT_REGISTRY_NAMESPACE",
    "AuthorizationDecision",
    "AuthorizationEngine",
    "EndpointExtractor",
    "EndpointMatcher",
    "EndpointRegistry",
    "RouteIdentity",
    "RouteIdentityProvider",
    "SourceChain",
    "SourceEvaluator",
    "SourceTiming",
    "auth_endpoint",
    "collect_watch_endpoints",
    "extract_credential",
    "route_identity_from_request",
]
