"""Application factory wiring the authorization engine into FastAPI."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import Depends, FastAPI

from endpoint_auth.app.exception_handlers import configure_exception_handlers
from endpoint_auth.core.authz import AuthorizationEngine, collect_watch_endpoints
from endpoint_auth.core.dependencies.authorization import (
    ENGINE_STATE_KEY,
    require_authorization,
)
from endpoint_auth.core.settings import get_authz_settings
from endpoint_auth.infra.logging import setup_logging

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from fastapi import APIRouter

    from endpoint_auth.core.authz import EndpointExtractor
    from endpoint_auth.core.schemas.authz import AccessSource
    from endpoint_auth.core.settings import AuthzSettings

logger = logging.getLogger(__name__)


def install_authorization(
    app: FastAPI,
    engine: AuthorizationEngine,
) -> FastAPI:
    """Install ``engine`` on ``app`` and register problem-detail handlers."""
    setattr(app.state, ENGINE_STATE_KEY, engine)
    configure_exception_handlers(app)
    return app


def create_app(
    *,
    settings: AuthzSettings | None = None,
    engine: AuthorizationEngine | None = None,
    handlers: Mapping[AccessSource, EndpointExtractor] | None = None,
    routers: Iterable[APIRouter] = (),
    configure_logging: bool = True,
    **fastapi_kwargs: Any,
) -> FastAPI:
    """Create a FastAPI application guarded by the authorization engine.

    Every router is included behind ``require_authorization``. When no
    engine is given one is built from ``settings``; endpoints decorated
    with ``auth_endpoint`` are added to its watch-list.

    Args:
        settings: Authorization settings; loaded from the environment when omitted.
        engine: Pre-built engine; ``settings`` and ``handlers`` are ignored.
        handlers: Extraction handlers for the ``cache``/``database`` sources.
        routers: Routers to guard and include.
        configure_logging: Configure logging from LoggingSettings.
        **fastapi_kwargs: Passed to FastAPI().
    """
    if configure_logging:
        setup_logging()

    routers = list(routers)
    if engine is None:
        watch_endpoints = [
            node for router in routers for node in collect_watch_endpoints(router.routes)
        ]
        engine = AuthorizationEngine(
            settings or get_authz_settings(),
            handlers=handlers,
            watch_endpoints=watch_endpoints,
        )

    app = FastAPI(**fastapi_kwargs)
    install_authorization(app, engine)
    for router in routers:
        app.include_router(router, dependencies=[Depends(require_authorization)])

    logger.info(
        "Authorization engine installed",
        extra={
            "sources": [s.value for s in engine.chain.sources],
            "watch_endpoints": len(engine.chain.watch_endpoints),
        },
    )
    return app
