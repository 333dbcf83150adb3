"""Modular Pydantic Settings v2 configuration.

Import settings via cached loaders:
    from endpoint_auth.core.settings import get_authz_settings

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. YAML/conf.d files (optional, conf/authz.yaml, conf/authz.d/*.yaml)
    3. Environment variables (AUTHZ_*, LOG_*)
    4. .env file (development only)
    5. secrets_dir (Kubernetes/Docker secrets)
"""

from __future__ import annotations

from .authz import AuthzSettings
from .loader import clear_all_caches, get_authz_settings, get_logging_settings
from .logs import LoggingSettings

__all__ = [
    "AuthzSettings",
    "LoggingSettings",
    "clear_all_caches",
    "get_authz_settings",
    "get_logging_settings",
]
