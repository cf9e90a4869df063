"""SQLite-backed implementation of the key-value store port."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from threading import Lock

from credstore.application.ports.kv_store import KeyValueStorePort

logger = logging.getLogger("credstore.kv.sqlite")

_SCHEMA = "CREATE TABLE IF NOT EXISTS kv (key BLOB PRIMARY KEY, value BLOB NOT NULL)"


class SqliteKeyValueStore(KeyValueStorePort):
    """Persist entries in a single SQLite table ordered by key bytes."""

    def __init__(self, path: Path) -> None:
        self._path = path
        if str(path) != ":memory:":
            path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(str(path), check_same_thread=False)
        self._lock = Lock()
        with self._lock, self._conn:
            self._conn.execute(_SCHEMA)
        logger.debug("opened sqlite key-value store", extra={"data": {"path": str(path)}})

    # ------------------------------------------------------------------
    # public API

    def get(self, key: bytes) -> bytes | None:
        with self._lock:
            row = self._conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        return bytes(row[0]) if row is not None else None

    def set(self, key: bytes, value: bytes) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                "INSERT INTO kv (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )

    def delete(self, key: bytes) -> None:
        with self._lock, self._conn:
            self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))

    def iterate(self) -> list[tuple[bytes, bytes]]:
        with self._lock:
            rows = self._conn.execute("SELECT key, value FROM kv ORDER BY key").fetchall()
        return [(bytes(key), bytes(value)) for key, value in rows]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> SqliteKeyValueStore:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["SqliteKeyValueStore"]
