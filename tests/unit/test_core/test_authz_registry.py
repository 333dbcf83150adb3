"""Tests for the endpoint registry."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
import logging
from typing import Any

import pytest

from endpoint_auth.core.authz.registry import DEFAULT_REGISTRY_NAMESPACE, EndpointRegistry


@pytest.mark.unit
class TestEndpointRegistry:
    def test_register_then_lookup(self) -> None:
        registry = EndpointRegistry()
        registry.register("abc123", True)
        assert registry.lookup("abc123") == (True, True)

    def test_reregister_overwrites(self) -> None:
        registry = EndpointRegistry()
        registry.register("abc123", True)
        registry.register("abc123", False)
        assert registry.lookup("abc123") == (False, True)
        assert len(registry) == 1

    def test_overwrite_is_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        registry = EndpointRegistry()
        registry.register("abc123", True)
        with caplog.at_level(logging.INFO, logger="endpoint_auth.core.authz.registry"):
            registry.register("abc123", False)
        assert "Access code verdict overwritten" in caplog.text

    def test_missing_code(self) -> None:
        assert EndpointRegistry().lookup("missing") == (False, False)

    @pytest.mark.parametrize("code", ["", None, 123])
    def test_rejects_invalid_codes(self, code: Any) -> None:
        registry = EndpointRegistry()
        with pytest.raises(ValueError, match="non-empty string"):
            registry.register(code, True)
        assert len(registry) == 0

    def test_initial_entries(self) -> None:
        registry = EndpointRegistry({"a": 1, "b": 0})
        assert registry.snapshot() == {"a": True, "b": False}
        assert "a" in registry
        assert "c" not in registry

    def test_snapshot_is_a_copy(self) -> None:
        registry = EndpointRegistry({"a": True})
        snapshot = registry.snapshot()
        snapshot["b"] = True
        assert "b" not in registry

    def test_repr(self) -> None:
        registry = EndpointRegistry({"a": True}, namespace="tests")
        assert repr(registry) == "EndpointRegistry(namespace='tests', entries=1)"


@pytest.mark.unit
class TestRegistryStore:
    def test_publish_and_load(self) -> None:
        store: dict[str, Any] = {}
        registry = EndpointRegistry()
        registry.register("abc123", True)
        registry.publish(store)

        assert store == {DEFAULT_REGISTRY_NAMESPACE: {"abc123": True}}
        loaded = EndpointRegistry.from_store(store)
        assert loaded.lookup("abc123") == (True, True)

    def test_load_from_empty_store(self) -> None:
        registry = EndpointRegistry.from_store({}, namespace="custom")
        assert len(registry) == 0
        assert registry.namespace == "custom"

    def test_namespaces_are_isolated(self) -> None:
        store: dict[str, Any] = {}
        EndpointRegistry({"a": True}, namespace="one").publish(store)
        assert len(EndpointRegistry.from_store(store, namespace="two")) == 0


@pytest.mark.unit
def test_concurrent_writers_and_readers() -> None:
    registry = EndpointRegistry()
    codes = [f"code-{i}" for i in range(200)]

    def write(code: str) -> None:
        registry.register(code, True)
        registry.register(code, False)

    def read(code: str) -> tuple[bool, bool]:
        return registry.lookup(code)

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(write, codes))
        results = list(pool.map(read, codes))

    assert len(registry) == len(codes)
    assert all(result == (False, True) for result in results)
