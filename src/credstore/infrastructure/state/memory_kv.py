"""In-memory implementation of the key-value store port."""

from __future__ import annotations

from threading import Lock

from credstore.application.ports.kv_store import KeyValueStorePort


class InMemoryKeyValueStore(KeyValueStorePort):
    """Keeps entries in memory for the lifetime of the process."""

    def __init__(self) -> None:
        self._entries: dict[bytes, bytes] = {}
        self._lock = Lock()

    def get(self, key: bytes) -> bytes | None:
        with self._lock:
            return self._entries.get(key)

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock:
            self._entries[bytes(key)] = bytes(value)

    def delete(self, key: bytes) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def iterate(self) -> list[tuple[bytes, bytes]]:
        with self._lock:
            return sorted(self._entries.items())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["InMemoryKeyValueStore"]
