from __future__ import annotations

import logging
import sqlite3
import time
from pathlib import Path
from typing import Dict, Optional, Protocol

from poi_editor.errors import StorageWriteError

logger = logging.getLogger("poi.storage")


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Process-local storage; contents vanish with the instance."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SQLiteKeyValueStorage:
    """SQLite-backed durable key/value storage."""

    def __init__(self, path: str) -> None:
        self.path = Path(path).expanduser()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path, check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def close(self) -> None:
        if self.conn is not None:
            self.conn.close()
            self.conn = None

    def _init_schema(self) -> None:
        self.conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at REAL NOT NULL
            )
            """
        )
        self.conn.commit()

    def get_item(self, key: str) -> Optional[str]:
        row = self.conn.execute(
            "SELECT value FROM kv_store WHERE key=?", (key,)
        ).fetchone()
        if not row:
            return None
        return str(row["value"])

    def set_item(self, key: str, value: str) -> None:
        try:
            self.conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=excluded.updated_at
                """,
                (key, value, float(time.time())),
            )
            self.conn.commit()
        except sqlite3.Error as e:
            logger.error("failed to write key %s to %s: %s", key, self.path, e)
            raise StorageWriteError(f"Could not persist {key}: {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            self.conn.execute("DELETE FROM kv_store WHERE key=?", (key,))
            self.conn.commit()
        except sqlite3.Error as e:
            raise StorageWriteError(f"Could not remove {key}: {e}") from e
