"""Credential key extraction from the request transport."""

from __future__ import annotations

from typing import TYPE_CHECKING

from endpoint_auth.core.exceptions import UnsupportedCredentialLocationError
from endpoint_auth.core.schemas.authz import CredentialLocation

if TYPE_CHECKING:
    from starlette.requests import Request

__all__ = ["extract_credential"]


def extract_credential(request: Request, location: CredentialLocation | str, key: str) -> str:
    """Read the credential named ``key`` from ``location``.

    Args:
        request: Incoming request.
        location: Query string, header or cookie.
        key: Parameter, header or cookie name.

    Returns:
        The credential value, or an empty string when it is not present.

    Raises:
        UnsupportedCredentialLocationError: For path-based or unknown locations.
    """
    try:
        location = CredentialLocation(location)
    except ValueError:
        raise UnsupportedCredentialLocationError(str(location)) from None

    match location:
        case CredentialLocation.QUERY:
            return request.query_params.get(key, "")
        case CredentialLocation.HEADER:
            return request.headers.get(key, "")
        case CredentialLocation.COOKIE:
            return request.cookies.get(key, "")
        case _:
            raise UnsupportedCredentialLocationError(location.value)
