"""Custom exception classes for endpoint authorization."""

from __future__ import annotations

from typing import Any


class AppException(Exception):
    """Base application exception.

    All custom exceptions should inherit from this class.
    Follows RFC 7807 Problem Details for HTTP APIs.

    Attributes:
        status_code: HTTP status code for the error.
        detail: Human-readable error message.
        type: Error type identifier (used in RFC 7807 problem details).
        title: Short, human-readable summary of the problem type.
        instance: URI reference that identifies the specific occurrence of the problem.
        extra: Additional context-specific information about the error.

    Example:
            raise AppException(
            status_code=403,
            detail="Access denied",
            type="authorization-denied",
            title="Forbidden",
            instance="/orders/list",
            extra={"controller": "orders", "action": "list"}
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize application exception.

        Args:
            status_code: HTTP status code.
            detail: Human-readable error message.
            type: Error type identifier.
            title: Short summary of the problem type.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or self._default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    @staticmethod
    def _default_title(status_code: int) -> str:
        """Get default title for HTTP status code.

        Args:
            status_code: HTTP status code.

        Returns:
            Human-readable title for the status code.
        """
        titles = {
            400: "Bad Request",
            401: "Unauthorized",
            403: "Forbidden",
            404: "Not Found",
            500: "Internal Server Error",
            503: "Service Unavailable",
        }
        return titles.get(status_code, "Error")


class UnauthorizedException(AppException):
    """Exception raised when a request lacks an acceptable credential.

    Example:
            raise UnauthorizedException(
            detail="Credential required",
            extra={"source_key": "Authorization"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "unauthorized",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize unauthorized exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=401,
            detail=detail,
            type=type,
            title="Unauthorized",
            instance=instance,
            extra=extra,
        )


class ForbiddenException(AppException):
    """Exception raised for authorization failures.

    Example:
            raise ForbiddenException(
            detail="Insufficient permissions",
            type="forbidden",
            extra={"access_code": "orders.delete"}
        )
    """

    def __init__(
        self,
        detail: str,
        type: str = "forbidden",
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Initialize forbidden exception.

        Args:
            detail: Human-readable error message.
            type: Error type identifier.
            instance: URI reference identifying this specific occurrence.
            extra: Additional context about the error.
        """
        super().__init__(
            status_code=403,
            detail=detail,
            type=type,
            title="Forbidden",
            instance=instance,
            extra=extra,
        )


class AuthorizationDeniedError(ForbiddenException):
    """Raised by the pipeline when the engine denies a request."""

    def __init__(
        self,
        controller: str | None = None,
        action: str | None = None,
        method: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        target = f"{controller}.{action}" if controller and action else "this endpoint"
        merged_extra = {"controller": controller, "action": action, "method": method}
        if extra:
            merged_extra.update(extra)
        super().__init__(
            detail=f"Access to {target} is not permitted",
            type="authorization-denied",
            instance=instance,
            extra=merged_extra,
        )


class UnsupportedCredentialLocationError(AppException):
    """Raised when credentials are configured to be read from an unsupported location.

    Reading credentials from the request path is never supported. This is a
    configuration error: it aborts the decision without falling back.
    """

    def __init__(self, location: str, extra: dict[str, Any] | None = None) -> None:
        merged_extra = {"location": str(location)}
        if extra:
            merged_extra.update(extra)
        super().__init__(
            status_code=500,
            detail=f"Credentials cannot be read from location '{location}'",
            type="unsupported-credential-location",
            extra=merged_extra,
        )
        self.location = str(location)
