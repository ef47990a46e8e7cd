"""Persistent membership store on an embedded SQLite file, values in CBOR."""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, Iterator

import cbor2

from ..exceptions import StorageError, storage_errors
from ..interfaces import MembershipStore

logger = logging.getLogger(__name__)

_SCHEMA = "CREATE TABLE IF NOT EXISTS kvs (key TEXT PRIMARY KEY, value BLOB NOT NULL)"


class PersistentStore(MembershipStore):
    """
    SQLite backed membership store.

    Args:
        path: Database file path, or ``":memory:"``

    Raises:
        StorageError: If the database cannot be opened
    """

    _BACKEND_NAME = "sqlite"

    def __init__(self, path: str | Path) -> None:
        if not path:
            raise StorageError("PersistentStore requires a database path")
        self.path = str(path)
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None
        logger.debug("Open KVStore path=%r", self.path)
        with storage_errors(f"open store {self.path!r}"):
            if self.path != ":memory:":
                Path(self.path).parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                self.path, check_same_thread=False
            )
            self._conn.execute("PRAGMA busy_timeout = 1000")
            with self._conn:
                self._conn.execute(_SCHEMA)

    @property
    def backend_name(self) -> str:
        return self._BACKEND_NAME

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError(f"store {self.path!r} is closed")
        return self._conn

    def get(self, key: str) -> Dict[str, Any] | None:
        with self._lock, storage_errors(f"get {key!r}"):
            row = self._connection().execute(
                "SELECT value FROM kvs WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            return cbor2.loads(row[0])

    def put(self, key: str, record: Dict[str, Any]) -> None:
        if not isinstance(record, dict):
            raise TypeError("record must be a dict")
        with self._lock, storage_errors(f"put {key!r}"):
            blob = cbor2.dumps(record)
            conn = self._connection()
            with conn:
                conn.execute(
                    "INSERT OR REPLACE INTO kvs (key, value) VALUES (?, ?)",
                    (key, blob),
                )

    def has(self, key: str) -> bool:
        with self._lock, storage_errors(f"has {key!r}"):
            row = self._connection().execute(
                "SELECT 1 FROM kvs WHERE key = ?", (key,)
            ).fetchone()
            return row is not None

    def keys(self) -> Iterator[str]:
        with self._lock, storage_errors("list keys"):
            rows = self._connection().execute(
                "SELECT key FROM kvs ORDER BY key"
            ).fetchall()
        return iter([row[0] for row in rows])

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "PersistentStore":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()
