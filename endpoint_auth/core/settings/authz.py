"""Endpoint authorization settings."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from endpoint_auth.core.schemas.authz import (
    WILDCARD_ACTION,
    AccessSource,
    AnyPermissionNode,
    CredentialLocation,
    parse_permission_nodes,
)

from .yaml_sources import create_authz_yaml_source

DEFAULT_ACCESS_SOURCES: tuple[AccessSource, ...] = (
    AccessSource.CACHE,
    AccessSource.DATABASE,
    AccessSource.DEFAULT,
)


class AuthzSettings(BaseSettings):
    """Authorization engine configuration.

    Environment variables use AUTHZ_ prefix.
    Example: AUTHZ_SOURCE_LOCATION=query AUTHZ_SOURCE_KEY=access_token

    The watch-list is normally supplied through conf/authz.yaml:

        watch_endpoints:
          - controller: orders
            action: "*"
            methods: [GET]
            is_allow: true
          - pattern: "^health\\."
            allow_guest: true
    """

    enabled: bool = Field(
        default=True,
        description="Evaluate authorization for monitored routes. When False every request is allowed.",
    )

    # Source chain
    access_sources: list[AccessSource] = Field(
        default_factory=lambda: list(DEFAULT_ACCESS_SOURCES),
        description="Access sources in evaluation order",
    )
    watch_endpoints: list[AnyPermissionNode] = Field(
        default_factory=list,
        description="Static permission nodes matched by the default source",
    )

    # Credential location
    source_key: str = Field(
        default="Authorization",
        min_length=1,
        description="Query parameter, header or cookie holding the credential key",
    )
    source_location: CredentialLocation = Field(
        default=CredentialLocation.HEADER,
        description="Where the credential key is read from (query|header|cookie)",
    )

    # Matching conventions
    controller_suffix: str = Field(
        default="",
        description="Suffix appended to the route controller when looking up wildcard nodes",
    )
    wildcard_action: str = Field(
        default=WILDCARD_ACTION,
        min_length=1,
        description="Action marker of controller-wide permission nodes",
    )

    # Registry
    registry_namespace: str = Field(
        default="endpoint_auth:endpoints",
        min_length=1,
        description="Shared cache key the endpoint registry state lives under",
    )

    # Diagnostics
    slow_source_threshold_ms: float = Field(
        default=50.0,
        ge=0,
        description="Log a warning when a source stage exceeds this duration (0 disables)",
    )

    # Pipeline behavior
    fail_open: bool = Field(
        default=False,
        description="Allow requests when a source handler raises (NOT recommended)",
    )
    deny_status_code: Literal[401, 403] = Field(
        default=403,
        description="HTTP status returned for denied requests",
    )

    model_config = SettingsConfigDict(
        env_prefix="AUTHZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_authz_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )

    @field_validator("access_sources")
    @classmethod
    def _require_sources(cls, value: list[AccessSource]) -> list[AccessSource]:
        if not value:
            msg = "access_sources must list at least one source"
            raise ValueError(msg)
        return value

    @field_validator("watch_endpoints", mode="before")
    @classmethod
    def _coerce_watch_endpoints(cls, value: Any) -> Any:
        """Allow nodes without an explicit kind (regex nodes are detected by 'pattern')."""
        if value is None:
            return []
        return list(parse_permission_nodes(value))

    @property
    def has_default_source(self) -> bool:
        return AccessSource.DEFAULT in self.access_sources
