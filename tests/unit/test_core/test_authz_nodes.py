"""Tests for permission node schemas."""

from __future__ import annotations

import re

from pydantic import ValidationError
import pytest

from endpoint_auth.core.schemas.authz import (
    NodeKind,
    PermissionNode,
    RegexPermissionNode,
    parse_permission_nodes,
)


@pytest.mark.unit
class TestPermissionNode:
    """Exact permission node behavior."""

    def test_methods_are_upper_cased(self) -> None:
        node = PermissionNode(controller="orders", action="list", methods=["get", " post "])
        assert node.methods == frozenset({"GET", "POST"})

    def test_single_method_string(self) -> None:
        node = PermissionNode(controller="orders", action="list", methods="delete")
        assert node.methods == frozenset({"DELETE"})

    def test_defaults_grant_nothing(self) -> None:
        node = PermissionNode(controller="orders", action="list")
        assert node.kind == NodeKind.EXACT
        assert node.methods == frozenset()
        assert not node.grants

    @pytest.mark.parametrize(
        ("is_allow", "allow_guest", "expected"),
        [
            (True, False, True),
            (False, True, True),
            (True, True, True),
            (False, False, False),
        ],
    )
    def test_grants(self, is_allow: bool, allow_guest: bool, expected: bool) -> None:
        node = PermissionNode(
            controller="orders", action="list", is_allow=is_allow, allow_guest=allow_guest
        )
        assert node.grants is expected

    def test_wildcard_action(self) -> None:
        assert PermissionNode(controller="orders", action="*").is_wildcard
        assert not PermissionNode(controller="orders", action="list").is_wildcard

    def test_nodes_are_frozen(self) -> None:
        node = PermissionNode(controller="orders", action="list")
        with pytest.raises(ValidationError):
            node.is_allow = True  # type: ignore[misc]


@pytest.mark.unit
class TestRegexPermissionNode:
    """Regex permission node behavior."""

    def test_pattern_is_compiled(self) -> None:
        node = RegexPermissionNode(pattern=r"^reports\.", is_allow=True)
        assert isinstance(node.pattern, re.Pattern)
        assert node.kind == NodeKind.REGEX

    def test_invalid_pattern_rejected(self) -> None:
        with pytest.raises(ValidationError):
            RegexPermissionNode(pattern="(unclosed")


@pytest.mark.unit
class TestParsePermissionNodes:
    """Validation of raw permission data."""

    def test_none_yields_empty_tuple(self) -> None:
        assert parse_permission_nodes(None) == ()

    def test_kind_inferred_from_pattern(self) -> None:
        nodes = parse_permission_nodes(
            [
                {"controller": "orders", "action": "list", "methods": ["GET"], "is_allow": True},
                {"pattern": r"^health\.", "allow_guest": True},
            ]
        )
        assert [node.kind for node in nodes] == [NodeKind.EXACT, NodeKind.REGEX]
        assert isinstance(nodes[0], PermissionNode)
        assert isinstance(nodes[1], RegexPermissionNode)

    def test_explicit_kind_is_respected(self) -> None:
        (node,) = parse_permission_nodes([{"kind": "regex", "pattern": "orders"}])
        assert isinstance(node, RegexPermissionNode)

    def test_instances_pass_through(self) -> None:
        original = PermissionNode(controller="orders", action="list", is_allow=True)
        (node,) = parse_permission_nodes([original])
        assert node == original

    def test_unknown_fields_are_ignored(self) -> None:
        (node,) = parse_permission_nodes([{"controller": "orders", "action": "list", "note": "x"}])
        assert not hasattr(node, "note")

    def test_unknown_kind_rejected(self) -> None:
        with pytest.raises(ValidationError):
            parse_permission_nodes([{"kind": "glob", "controller": "orders"}])

    def test_returns_tuple(self) -> None:
        nodes = parse_permission_nodes(iter([{"controller": "orders", "action": "list"}]))
        assert isinstance(nodes, tuple)
