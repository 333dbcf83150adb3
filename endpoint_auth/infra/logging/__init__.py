"""Logging infrastructure.

Structured logging built on the standard library:
- JSONL format for Loki/Elasticsearch ingestion
- OpenTelemetry trace correlation
- Optional rotating log file

Basic usage:
    from endpoint_auth.infra.logging import setup_logging
    import logging

    setup_logging()
    logger = logging.getLogger(__name__)
    logger.info("Engine ready", extra={"sources": ["cache", "default"]})
"""

from endpoint_auth.infra.logging.config import configure_logging, setup_logging
from endpoint_auth.infra.logging.formatters import JSONFormatter

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "setup_logging",
]
