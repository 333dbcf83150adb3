"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the process.

Usage:
    from endpoint_auth.core.settings.loader import get_authz_settings

    settings = get_authz_settings()  # First call: loads and validates
    settings = get_authz_settings()  # Subsequent calls: returns cached instance

Testing:
    In tests, clear the cache to force reload:
    clear_all_caches()

    Or override with custom values:
    settings = AuthzSettings(access_sources=["default"], ...)
"""

from __future__ import annotations

from functools import lru_cache

from .authz import AuthzSettings
from .logs import LoggingSettings


@lru_cache(maxsize=1)
def get_authz_settings() -> AuthzSettings:
    """Get cached authorization settings.

    Returns:
        Validated and frozen AuthzSettings instance.
    """
    return AuthzSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear all settings caches (useful for testing)."""
    get_authz_settings.cache_clear()
    get_logging_settings.cache_clear()
