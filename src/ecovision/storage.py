"""
Key-value persistence surface.

Every persisted value is a JSON-compatible list stored under a string key:
one list of identities, one list of sessions, and one list of records per
(entity kind, owner) partition. Rewriting a key is atomic.
"""

import copy
import json
import sqlite3
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from loguru import logger


class KeyValueStore:
    """
    Base class for key-value backends.

    ``lock`` is re-entrant and shared by every component using the same
    backend, so read-modify-write cycles on one key are serialized.
    """

    def __init__(self):
        self.lock = threading.RLock()

    def get(self, key: str, default: Optional[List[Any]] = None) -> List[Any]:
        raise NotImplementedError

    def put(self, key: str, value: List[Any]) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> bool:
        raise NotImplementedError

    def keys(self, prefix: str = "") -> List[str]:
        raise NotImplementedError


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local backend. Values are copied in and out."""

    def __init__(self):
        super().__init__()
        self._data: Dict[str, List[Any]] = {}

    def get(self, key: str, default: Optional[List[Any]] = None) -> List[Any]:
        with self.lock:
            if key not in self._data:
                return [] if default is None else default
            return copy.deepcopy(self._data[key])

    def put(self, key: str, value: List[Any]) -> None:
        with self.lock:
            self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> bool:
        with self.lock:
            return self._data.pop(key, None) is not None

    def keys(self, prefix: str = "") -> List[str]:
        with self.lock:
            return sorted(k for k in self._data if k.startswith(prefix))


class SQLiteKeyValueStore(KeyValueStore):
    """
    SQLite backend.

    One row per key; each ``put`` replaces the row in a single statement.
    """

    def __init__(self, db_path: Path):
        """
        Initialize store.

        Args:
            db_path: Path to SQLite database file
        """
        super().__init__()
        self.db_path = Path(db_path)
        self._init_db()

    def _init_db(self):
        """Create the table if it doesn't exist."""
        with self.lock:
            conn = sqlite3.connect(str(self.db_path))
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
            """)

            conn.commit()
            conn.close()

            logger.info(f"Key-value store initialized: {self.db_path}")

    def get(self, key: str, default: Optional[List[Any]] = None) -> List[Any]:
        with self.lock:
            conn = sqlite3.connect(str(self.db_path))
            cursor = conn.cursor()

            cursor.execute("SELECT value FROM kv WHERE key = ?", (key,))
            row = cursor.fetchone()
            conn.close()

            if not row:
                return [] if default is None else default

            return json.loads(row[0])

    def put(self, key: str, value: List[Any]) -> None:
        with self.lock:
            conn = sqlite3.connect(str(self.db_path))
            cursor = conn.cursor()

            cursor.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
                (key, json.dumps(value)),
            )

            conn.commit()
            conn.close()

    def delete(self, key: str) -> bool:
        with self.lock:
            conn = sqlite3.connect(str(self.db_path))
            cursor = conn.cursor()

            cursor.execute("DELETE FROM kv WHERE key = ?", (key,))

            conn.commit()
            success = cursor.rowcount > 0
            conn.close()

            return success

    def keys(self, prefix: str = "") -> List[str]:
        with self.lock:
            conn = sqlite3.connect(str(self.db_path))
            cursor = conn.cursor()

            # substr avoids LIKE wildcard escaping for ':' and '_' in keys
            cursor.execute(
                "SELECT key FROM kv WHERE substr(key, 1, ?) = ? ORDER BY key",
                (len(prefix), prefix),
            )
            keys = [row[0] for row in cursor.fetchall()]
            conn.close()

            return keys


def open_store(database_path: Optional[str] = None) -> KeyValueStore:
    """
    Open the configured backend.

    Args:
        database_path: SQLite file path, or None for an in-memory store

    Returns:
        KeyValueStore instance
    """
    if database_path is None:
        return InMemoryKeyValueStore()
    return SQLiteKeyValueStore(Path(database_path))
