"""Key-value state repository backed by SQLite."""

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator, Mapping


class StateRepository:
    """Persistent scoped storage for UI state (JSON values keyed by name).

    Every value is written whole; there are no partial updates.
    """

    def __init__(self, db_path: Path):
        """Initialize repository with database path.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._init_db()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database connections."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    def _init_db(self) -> None:
        """Initialize database schema."""
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS kv_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
            """)
            conn.commit()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the decoded value stored under *key*, or *default*."""
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT value FROM kv_state WHERE key = ?", (key,))
            row = cursor.fetchone()
        if row is None:
            return default
        try:
            return json.loads(row["value"])
        except json.JSONDecodeError:
            return default

    def set(self, key: str, value: Any) -> None:
        """Store *value* (JSON-serialisable) under *key*, replacing any previous value."""
        self.set_many({key: value})

    def set_many(self, values: Mapping[str, Any]) -> None:
        """Store several keys in one transaction."""
        if not values:
            return
        now = datetime.now(timezone.utc).isoformat()
        rows = [(key, json.dumps(value), now) for key, value in values.items()]
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.executemany(
                """
                INSERT INTO kv_state (key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                rows,
            )
            conn.commit()

    def delete(self, key: str) -> bool:
        """Remove *key*.  Returns True if it existed."""
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM kv_state WHERE key = ?", (key,))
            conn.commit()
            return cursor.rowcount > 0

    def keys(self) -> list[str]:
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT key FROM kv_state ORDER BY key")
            return [row["key"] for row in cursor.fetchall()]

    def clear(self) -> int:
        """Remove every stored key.  Returns the number of rows deleted."""
        with self._connection() as conn:
            cursor = conn.cursor()
            cursor.execute("DELETE FROM kv_state")
            conn.commit()
            return cursor.rowcount
