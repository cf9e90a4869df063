"""Port describing the ordered key-value store behind the credential store."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol


class KeyValueStorePort(Protocol):
    """Byte-keyed map with point access and forward iteration in key order."""

    def get(self, key: bytes) -> bytes | None:
        """Return the value stored under ``key`` or ``None`` when absent."""

    def set(self, key: bytes, value: bytes) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    def delete(self, key: bytes) -> None:
        """Remove ``key``; absent keys are ignored."""

    def iterate(self) -> Iterable[tuple[bytes, bytes]]:
        """Return ``(key, value)`` pairs in ascending key order."""


__all__ = ["KeyValueStorePort"]
