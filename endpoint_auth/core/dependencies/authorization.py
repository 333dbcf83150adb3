"""Authorization dependencies for FastAPI routes.

Attach ``require_authorization`` to a router (or a single route) to run the
authorization engine before the handler:

    from fastapi import APIRouter, Depends
    from endpoint_auth.core.dependencies.authorization import require_authorization

    router = APIRouter(
        prefix="/orders",
        tags=["orders"],
        dependencies=[Depends(require_authorization)],
    )

The engine is taken from ``app.state.authorization_engine`` when present
(see ``endpoint_auth.app.main.create_app``), otherwise a process-wide
engine is built from ``AuthzSettings``.

Failure policy:
    - Denied requests raise AuthorizationDeniedError (403), or
      UnauthorizedException (401) when AUTHZ_DENY_STATUS_CODE=401.
    - UnsupportedCredentialLocationError always propagates.
    - Exceptions from source handlers are logged and resolved fail-closed
      (deny) unless AUTHZ_FAIL_OPEN=true.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Request

from endpoint_auth.core.authz import AuthorizationEngine
from endpoint_auth.core.exceptions import (
    AuthorizationDeniedError,
    UnauthorizedException,
    UnsupportedCredentialLocationError,
)
from endpoint_auth.core.settings import get_authz_settings

logger = logging.getLogger(__name__)

ENGINE_STATE_KEY = "authorization_engine"


@lru_cache(maxsize=1)
def get_default_engine() -> AuthorizationEngine:
    """Get the cached settings-only engine (no extraction handlers bound)."""
    return AuthorizationEngine(get_authz_settings())


def get_authorization_engine(request: Request) -> AuthorizationEngine:
    """Resolve the engine installed on the application, or the default one."""
    engine = getattr(request.app.state, ENGINE_STATE_KEY, None)
    if engine is None:
        engine = get_default_engine()
    return engine


async def require_authorization(
    request: Request,
    engine: Annotated[AuthorizationEngine, Depends(get_authorization_engine)],
) -> None:
    """Deny the request unless the authorization engine allows it.

    Raises:
        AuthorizationDeniedError: When the engine denies the request (403).
        UnauthorizedException: When denied and the deny status is 401.
        UnsupportedCredentialLocationError: On credential misconfiguration.
    """
    try:
        allowed = await engine.authorize(request)
    except UnsupportedCredentialLocationError:
        raise
    except Exception:
        logger.exception(
            "Authorization source failed",
            extra={
                "path": request.url.path,
                "method": request.method,
                "fail_open": engine.settings.fail_open,
            },
        )
        if engine.settings.fail_open:
            return
        allowed = False

    if allowed:
        return

    route = engine.route_identity(request)
    if engine.settings.deny_status_code == 401:
        raise UnauthorizedException(
            detail="A valid credential is required for this endpoint",
            instance=request.url.path,
            extra={"source_key": engine.settings.source_key},
        )
    raise AuthorizationDeniedError(
        controller=route.controller,
        action=route.action,
        method=route.method,
        instance=request.url.path,
    )


AuthorizedRequest = Annotated[None, Depends(require_authorization)]
