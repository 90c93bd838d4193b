"""In-memory store for SQL text registered with ``store_sql``.

Each database name owns its own ``sql_id -> sql`` mapping. Ids stored
against one database are never visible from another.
"""

from __future__ import annotations

import threading


class SqlStatementStore:
    """Lock-guarded per-database mapping of stored SQL text."""

    def __init__(self) -> None:
        self._statements: dict[str, dict[int, str]] = {}
        self._lock = threading.Lock()

    def ensure(self, db_name: str) -> None:
        """Create an empty mapping for *db_name* if it has none yet."""
        with self._lock:
            self._statements.setdefault(db_name, {})

    def store(self, db_name: str, sql_id: int, sql: str) -> None:
        """Register (or overwrite) *sql* under *sql_id*."""
        with self._lock:
            self._statements.setdefault(db_name, {})[sql_id] = sql

    def get(self, db_name: str, sql_id: int) -> str | None:
        with self._lock:
            return self._statements.get(db_name, {}).get(sql_id)

    def forget(self, db_name: str, sql_id: int) -> None:
        """Drop one stored id; unknown ids are ignored."""
        with self._lock:
            self._statements.get(db_name, {}).pop(sql_id, None)

    def clear(self, db_name: str) -> None:
        """Forget every id stored for *db_name*."""
        with self._lock:
            if db_name in self._statements:
                self._statements[db_name] = {}

    def drop(self, db_name: str) -> None:
        """Remove the mapping entirely (the database itself is gone)."""
        with self._lock:
            self._statements.pop(db_name, None)

    def clear_all(self) -> None:
        with self._lock:
            self._statements.clear()

    def count(self, db_name: str) -> int:
        with self._lock:
            return len(self._statements.get(db_name, {}))
