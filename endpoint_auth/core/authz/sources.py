"""Ordered evaluation of authorization sources.

A source chain lists the access sources consulted for every request, in a
fixed order. Each source either defers (it has no permission data for the
credential) or yields permission nodes, which the endpoint matcher turns
into the final verdict. The first source that does not defer decides; if
every source defers the request is denied.

Source behavior:
    - ``cache`` / ``database``: call the bound extraction handler. ``None``
      defers; any sequence, including an empty one, decides.
    - ``auth_center``: no-op extension point, always defers.
    - ``default``: matches the static watch-list, always decides.
"""

from __future__ import annotations

import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from endpoint_auth.core.schemas.authz import AccessSource, parse_permission_nodes
from endpoint_auth.infra.metrics import tracking

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterable, Mapping, Sequence

    from starlette.requests import Request

    from endpoint_auth.core.authz.matcher import EndpointMatcher, RouteIdentity
    from endpoint_auth.core.schemas.authz import AnyPermissionNode
    from endpoint_auth.core.settings.authz import AuthzSettings

__all__ = [
    "HANDLER_SOURCES",
    "AuthorizationDecision",
    "EndpointExtractor",
    "SourceChain",
    "SourceEvaluator",
    "SourceTiming",
]

logger = logging.getLogger(__name__)

# Source kinds backed by an external extraction handler
HANDLER_SOURCES = frozenset({AccessSource.CACHE, AccessSource.DATABASE})


class EndpointExtractor(Protocol):
    """Handler that fetches permission nodes for a credential.

    Returns ``None`` when the source has no data for the credential, which
    defers to the next source. May be a plain or an async callable.
    """

    def __call__(
        self,
        credential_key: str,
        request: Request,
        options: AuthzSettings,
    ) -> Sequence[AnyPermissionNode] | None | Awaitable[Sequence[AnyPermissionNode] | None]: ...


@dataclass(frozen=True, slots=True)
class SourceTiming:
    """Elapsed time of one evaluation stage of a source."""

    source: AccessSource
    stage: str
    duration_ms: float


@dataclass(frozen=True, slots=True)
class AuthorizationDecision:
    """Outcome of evaluating a source chain for one request."""

    allowed: bool
    source: AccessSource | None = None
    deferred: tuple[AccessSource, ...] = ()
    timings: tuple[SourceTiming, ...] = ()

    @property
    def exhausted(self) -> bool:
        """True when no source produced a verdict."""
        return self.source is None


@dataclass(frozen=True)
class SourceChain:
    """Configured source order bound to extraction handlers.

    Args:
        sources: Access sources in evaluation order.
        handlers: Extraction handler per handler-backed source.
        watch_endpoints: Nodes matched by the ``default`` source.

    Raises:
        ValueError: If the chain is empty or a handler is bound to a source
            that does not use one.
    """

    sources: tuple[AccessSource, ...]
    handlers: Mapping[AccessSource, EndpointExtractor] = field(default_factory=dict)
    watch_endpoints: tuple[AnyPermissionNode, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "sources", tuple(AccessSource(s) for s in self.sources))
        object.__setattr__(
            self, "handlers", {AccessSource(k): v for k, v in dict(self.handlers).items()}
        )
        object.__setattr__(self, "watch_endpoints", parse_permission_nodes(self.watch_endpoints))

        if not self.sources:
            msg = "Source chain must contain at least one access source"
            raise ValueError(msg)
        unsupported = set(self.handlers) - HANDLER_SOURCES
        if unsupported:
            names = ", ".join(sorted(s.value for s in unsupported))
            msg = f"Extraction handlers cannot be bound to: {names}"
            raise ValueError(msg)
        if AccessSource.DEFAULT not in self.sources:
            logger.warning(
                "Source chain has no default source; exhausted chains deny",
                extra={"sources": [s.value for s in self.sources]},
            )

    @classmethod
    def from_settings(
        cls,
        settings: AuthzSettings,
        handlers: Mapping[AccessSource, EndpointExtractor] | None = None,
        watch_endpoints: Iterable[AnyPermissionNode] = (),
    ) -> SourceChain:
        """Build a chain from settings, appending extra watch-list nodes."""
        return cls(
            sources=tuple(settings.access_sources),
            handlers=handlers or {},
            watch_endpoints=(*settings.watch_endpoints, *watch_endpoints),
        )


class SourceEvaluator:
    """Walks a source chain and returns the first definitive verdict.

    Sources are evaluated strictly one after another; a source is only
    consulted when every earlier source deferred.
    """

    def __init__(
        self,
        chain: SourceChain,
        matcher: EndpointMatcher,
        options: AuthzSettings,
    ) -> None:
        self.chain = chain
        self.matcher = matcher
        self.options = options

    async def evaluate(
        self,
        request: Request,
        credential_key: str,
        route: RouteIdentity,
    ) -> AuthorizationDecision:
        """Evaluate the chain for one request.

        Exceptions raised by extraction handlers propagate unchanged.
        """
        deferred: list[AccessSource] = []
        timings: list[SourceTiming] = []

        for source in self.chain.sources:
            match source:
                case AccessSource.AUTH_CENTER:
                    logger.debug("Auth center source is not implemented; deferring")
                    deferred.append(source)
                    continue
                case AccessSource.DEFAULT:
                    nodes: tuple[AnyPermissionNode, ...] | None = self.chain.watch_endpoints
                case _:
                    nodes = await self._extract(source, request, credential_key, timings)
                    if nodes is None:
                        logger.debug(
                            "Access source deferred",
                            extra={"source": source.value, "path": request.url.path},
                        )
                        deferred.append(source)
                        continue

            start = time.perf_counter()
            allowed = self.matcher.match(route, nodes)
            self._record(source, "match", start, timings)
            return self._decide(allowed, source, deferred, timings)

        logger.warning(
            "No access source produced a verdict; denying",
            extra={
                "path": request.url.path,
                "sources": [s.value for s in self.chain.sources],
            },
        )
        self._safely(tracking.track_no_verdict)
        return self._decide(False, None, deferred, timings)

    async def _extract(
        self,
        source: AccessSource,
        request: Request,
        credential_key: str,
        timings: list[SourceTiming],
    ) -> tuple[AnyPermissionNode, ...] | None:
        handler = self.chain.handlers.get(source)
        if handler is None:
            return None

        start = time.perf_counter()
        try:
            result = handler(credential_key, request, self.options)
            if inspect.isawaitable(result):
                result = await result
        finally:
            self._record(source, "extract", start, timings)

        if result is None:
            return None
        return parse_permission_nodes(result)

    def _record(
        self,
        source: AccessSource,
        stage: str,
        start: float,
        timings: list[SourceTiming],
    ) -> None:
        elapsed = time.perf_counter() - start
        duration_ms = elapsed * 1000
        timings.append(SourceTiming(source=source, stage=stage, duration_ms=duration_ms))
        self._safely(tracking.track_source_duration, source.value, stage, elapsed)

        log_extra = {"source": source.value, "stage": stage, "duration_ms": round(duration_ms, 3)}
        threshold = self.options.slow_source_threshold_ms
        if threshold and duration_ms > threshold:
            logger.warning("Slow access source", extra={**log_extra, "threshold_ms": threshold})
        else:
            logger.debug("Access source timing", extra=log_extra)

    def _decide(
        self,
        allowed: bool,
        source: AccessSource | None,
        deferred: list[AccessSource],
        timings: list[SourceTiming],
    ) -> AuthorizationDecision:
        self._safely(tracking.track_decision, source.value if source else None, allowed)
        return AuthorizationDecision(
            allowed=allowed,
            source=source,
            deferred=tuple(deferred),
            timings=tuple(timings),
        )

    @staticmethod
    def _safely(func: Any, *args: Any) -> None:
        # Metrics must never change a verdict.
        try:
            func(*args)
        except Exception:
            logger.debug("Failed to record authorization metric", exc_info=True)
