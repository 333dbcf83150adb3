"""FastAPI dependencies."""

from __future__ import annotations

from .authorization import (
    AuthorizedRequest,
    get_authorization_engine,
    get_default_engine,
    require_authorization,
)

__all__ = [
    "AuthorizedRequest",
    "get_authorization_engine",
    "get_default_engine",
    "require_authorization",
]
