"""Process-wide registry of access-code verdicts.

The registry memoizes whether an access code is accepted. Entries are
never evicted; a code only changes when it is registered again.

Instances are created once (usually by the authorization engine) and
shared by reference. State can be loaded from, and published to, a shared
cache mapping under a fixed namespace key.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Mapping, MutableMapping

__all__ = ["DEFAULT_REGISTRY_NAMESPACE", "EndpointRegistry"]

logger = logging.getLogger(__name__)

DEFAULT_REGISTRY_NAMESPACE = "endpoint_auth:endpoints"


class EndpointRegistry:
    """Thread-safe, never-evicting map of access code to verdict.

    Example:
        >>> registry = EndpointRegistry()
        >>> registry.register("abc123", True)
        >>> registry.lookup("abc123")
        (True, True)
        >>> registry.lookup("missing")
        (False, False)
    """

    def __init__(
        self,
        entries: Mapping[str, bool] | None = None,
        *,
        namespace: str = DEFAULT_REGISTRY_NAMESPACE,
    ) -> None:
        self.namespace = namespace
        self._lock = threading.Lock()
        self._entries: dict[str, bool] = {
            str(code): bool(accepted) for code, accepted in (entries or {}).items()
        }

    @classmethod
    def from_store(
        cls,
        store: Mapping[str, Any],
        namespace: str = DEFAULT_REGISTRY_NAMESPACE,
    ) -> EndpointRegistry:
        """Load a registry from state previously published to ``store``.

        Args:
            store: Shared cache mapping.
            namespace: Key the registry state lives under.

        Returns:
            Registry seeded with the stored entries, or empty if none exist.
        """
        existing = store.get(namespace)
        if existing:
            logger.debug(
                "Loaded endpoint registry state",
                extra={"namespace": namespace, "entries": len(existing)},
            )
        return cls(existing, namespace=namespace)

    def publish(self, store: MutableMapping[str, Any]) -> None:
        """Write a snapshot of the registry into ``store`` under its namespace."""
        store[self.namespace] = self.snapshot()

    def register(self, access_code: str, is_accepted: bool) -> None:
        """Insert or overwrite the verdict for ``access_code``.

        Raises:
            ValueError: If ``access_code`` is empty or not a string.
        """
        if not isinstance(access_code, str) or not access_code:
            msg = "access_code must be a non-empty string"
            raise ValueError(msg)
        with self._lock:
            previous = self._entries.get(access_code)
            self._entries[access_code] = bool(is_accepted)
        if previous is not None and previous != bool(is_accepted):
            logger.info(
                "Access code verdict overwritten",
                extra={"access_code": access_code, "is_accepted": bool(is_accepted)},
            )

    def lookup(self, access_code: str) -> tuple[bool, bool]:
        """Return ``(verdict, found)`` for ``access_code``."""
        with self._lock:
            if access_code in self._entries:
                return self._entries[access_code], True
        return False, False

    def snapshot(self) -> dict[str, bool]:
        """Return a copy of all entries."""
        with self._lock:
            return dict(self._entries)

    def __contains__(self, access_code: object) -> bool:
        with self._lock:
            return access_code in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(namespace={self.namespace!r}, entries={len(self)})"
