"""Permission node schemas for endpoint authorization.

Permission nodes are produced by authorization sources (cache, database,
static watch-list) and consumed by the endpoint matcher. Two kinds exist:

- ``PermissionNode``: exact controller/action match, limited to HTTP methods
- ``RegexPermissionNode``: pattern matched against ``"<controller>.<action>"``

Both share a ``kind`` discriminator so lists can be validated from plain
mappings (YAML, JSON, database rows) into a tagged union.

Example:
    >>> nodes = parse_permission_nodes([
    ...     {"controller": "orders", "action": "list", "methods": ["get"], "is_allow": True},
    ...     {"pattern": r"^reports\\.", "allow_guest": True},
    ... ])
    >>> [node.kind for node in nodes]
    [<NodeKind.EXACT: 'exact'>, <NodeKind.REGEX: 'regex'>]
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

__all__ = [
    "WILDCARD_ACTION",
    "AccessSource",
    "AnyPermissionNode",
    "CredentialLocation",
    "NodeKind",
    "PermissionNode",
    "RegexPermissionNode",
    "parse_permission_nodes",
]

WILDCARD_ACTION = "*"


class NodeKind(StrEnum):
    """Discriminator for permission node variants."""

    EXACT = "exact"
    REGEX = "regex"


class AccessSource(StrEnum):
    """Origins of permission data, consulted in configured order."""

    AUTH_CENTER = "auth_center"
    CACHE = "cache"
    DATABASE = "database"
    DEFAULT = "default"


class CredentialLocation(StrEnum):
    """Where the credential key is read from (OpenAPI parameter locations)."""

    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class _NodeBase(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    is_allow: bool = Field(default=False, description="Grant access to identified callers")
    allow_guest: bool = Field(default=False, description="Grant access without identity")
    access_code: str | None = Field(
        default=None,
        description="Named authorization unit this node represents (e.g. 'orders.list')",
    )

    @property
    def grants(self) -> bool:
        """Whether the node grants access when it applies."""
        return self.allow_guest or self.is_allow


class PermissionNode(_NodeBase):
    """Exact controller/action permission.

    ``action`` may be the wildcard marker to cover every action of a
    controller. ``methods`` is stored upper-cased.
    """

    kind: Literal["exact"] = NodeKind.EXACT.value
    controller: str | None = None
    action: str | None = None
    methods: frozenset[str] = Field(default_factory=frozenset)

    @field_validator("methods", mode="before")
    @classmethod
    def _normalize_methods(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            value = [value]
        return frozenset(str(method).strip().upper() for method in value if method)

    @property
    def is_wildcard(self) -> bool:
        return self.action == WILDCARD_ACTION


class RegexPermissionNode(_NodeBase):
    """Permission whose scope is a pattern over ``"<controller>.<action>"``."""

    kind: Literal["regex"] = NodeKind.REGEX.value
    pattern: re.Pattern[str]


AnyPermissionNode = Annotated[
    PermissionNode | RegexPermissionNode,
    Field(discriminator="kind"),
]

_node_list_adapter: TypeAdapter[list[AnyPermissionNode]] = TypeAdapter(list[AnyPermissionNode])


def _with_kind(item: Any) -> Any:
    if isinstance(item, Mapping) and "kind" not in item:
        kind = NodeKind.REGEX if "pattern" in item else NodeKind.EXACT
        return {**item, "kind": kind.value}
    return item


def parse_permission_nodes(data: Iterable[Any] | None) -> tuple[AnyPermissionNode, ...]:
    """Validate raw permission data into an immutable tuple of nodes.

    Accepts node instances or mappings. Mappings without an explicit
    ``kind`` are treated as regex nodes when they carry a ``pattern``.

    Raises:
        pydantic.ValidationError: If any entry is malformed.
    """
    if data is None:
        return ()
    return tuple(_node_list_adapter.validate_python([_with_kind(item) for item in data]))
