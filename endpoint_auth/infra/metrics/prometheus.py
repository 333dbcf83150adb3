"""Prometheus metrics for authorization decisions."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

# Create custom registry for better control
REGISTRY = CollectorRegistry()

# Source evaluation is expected to be fast; covers 100μs to 1s
SOURCE_LATENCY_BUCKETS = (
    0.0001,  # 100μs
    0.0005,  # 500μs
    0.001,  # 1ms
    0.005,  # 5ms
    0.01,  # 10ms
    0.025,  # 25ms
    0.05,  # 50ms
    0.1,  # 100ms
    0.25,  # 250ms
    0.5,  # 500ms
    1.0,  # 1s
)

authz_source_duration_seconds = Histogram(
    "authz_source_duration_seconds",
    "Time spent evaluating an authorization source, by stage",
    ["source", "stage"],
    buckets=SOURCE_LATENCY_BUCKETS,
    registry=REGISTRY,
)

authz_decisions_total = Counter(
    "authz_decisions_total",
    "Authorization decisions by deciding source and verdict",
    ["source", "verdict"],
    registry=REGISTRY,
)

authz_no_verdict_total = Counter(
    "authz_no_verdict_total",
    "Decisions where every configured source deferred",
    registry=REGISTRY,
)

errors_total = Counter(
    "errors_total",
    "Application errors rendered as problem responses",
    ["error_type", "endpoint", "status_code"],
    registry=REGISTRY,
)
