"""Helper functions for tracking authorization metrics."""

from __future__ import annotations

import logging
from typing import Any

from endpoint_auth.infra.metrics import prometheus

logger = logging.getLogger(__name__)


# ============================================================================
# Authorization Tracking
# ============================================================================


def track_source_duration(source: str, stage: str, duration_seconds: float) -> None:
    """Record how long one stage of a source evaluation took.

    Args:
        source: Access source name (e.g., 'cache', 'database', 'default')
        stage: Evaluation stage ('extract' or 'match')
        duration_seconds: Elapsed time in seconds

    Example:
            track_source_duration("database", "extract", 0.012)
    """
    prometheus.authz_source_duration_seconds.labels(source=source, stage=stage).observe(
        duration_seconds
    )


def track_decision(source: str | None, allowed: bool) -> None:
    """Count an authorization decision.

    Args:
        source: Deciding access source, or None when the chain was exhausted
        allowed: Final verdict
    """
    prometheus.authz_decisions_total.labels(
        source=source or "none",
        verdict="allow" if allowed else "deny",
    ).inc()


def track_no_verdict() -> None:
    """Count a decision where every configured source deferred."""
    prometheus.authz_no_verdict_total.inc()


# ============================================================================
# Error Tracking
# ============================================================================


def track_error(
    error_type: str,
    endpoint: str,
    status_code: int,
    extra: dict[str, Any] | None = None,
) -> None:
    """Track an error occurrence.

    Args:
        error_type: Type of error (e.g., 'authorization-denied')
        endpoint: API endpoint where error occurred
        status_code: HTTP status code
        extra: Additional context for logging

    Example:
            track_error("authorization-denied", "/orders", 403, {"action": "list"})
    """
    prometheus.errors_total.labels(
        error_type=error_type,
        endpoint=endpoint,
        status_code=str(status_code),
    ).inc()

    logger.debug(
        f"Tracked error: {error_type}",
        extra={"endpoint": endpoint, "status_code": status_code, **(extra or {})},
    )
