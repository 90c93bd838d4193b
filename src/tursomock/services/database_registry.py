"""File-backed registry of per-tenant SQLite databases.

Every logical database is one ``<name>.db`` file in a configured directory.
Handles are opened lazily on first reference and cached until the database
is deleted or the process shuts down.
"""

from __future__ import annotations

import re
import sqlite3
import threading
from pathlib import Path

from loguru import logger

from tursomock.application.exceptions import DatabaseAlreadyExistsError, InvalidDatabaseNameError
from tursomock.domain.models import QueryRows, RunResult
from tursomock.domain.protocols import Parameters

_VALID_NAME = re.compile(r"[A-Za-z0-9_-]+")
_DB_SUFFIX = ".db"
_SIDECAR_SUFFIXES = ("-wal", "-shm")


def validate_database_name(name: str) -> str:
    """Return *name* unchanged, or raise if it cannot be used as a file name."""
    if not _VALID_NAME.fullmatch(name or ""):
        raise InvalidDatabaseNameError(
            f"Invalid database name {name!r}: use letters, digits, '-' and '_' only"
        )
    return name


def split_statements(sql: str) -> list[str]:
    """Split a script into complete statements.

    Semicolons inside string literals, comments and trigger bodies do not
    end a statement. Trailing text that is not a complete statement is
    returned as the last entry so the engine can report it.
    """
    statements: list[str] = []
    buffer = ""
    pieces = sql.split(";")
    for index, piece in enumerate(pieces):
        buffer += piece
        if index == len(pieces) - 1:
            break
        buffer += ";"
        if sqlite3.complete_statement(buffer):
            if buffer.strip(" \t\r\n;"):
                statements.append(buffer.strip())
            buffer = ""
    if buffer.strip():
        statements.append(buffer.strip())
    return statements


# ---------------------------------------------------------------------------
# Handle
# ---------------------------------------------------------------------------


class DatabaseHandle:
    """One autocommit SQLite connection, serialized by its own lock."""

    def __init__(self, name: str, path: Path) -> None:
        self.name = name
        self.path = path
        self._lock = threading.RLock()
        # isolation_level=None: no implicit transactions, clients send BEGIN/COMMIT
        self._conn = sqlite3.connect(str(path), check_same_thread=False, isolation_level=None)
        self._conn.execute("PRAGMA journal_mode=WAL")

    def execute_script(self, sql: str) -> None:
        """Run a script of one or more statements without parameters.

        Statements run one by one on the connection, so a transaction the
        client opened earlier stays open.
        """
        with self._lock:
            for statement in split_statements(sql):
                cursor = self._conn.execute(statement)
                try:
                    cursor.fetchall()
                finally:
                    cursor.close()

    def query(self, sql: str, params: Parameters = ()) -> QueryRows:
        """Run one statement and fetch every row it produces."""
        with self._lock:
            cursor = self._conn.execute(sql, params)
            try:
                rows = cursor.fetchall()
                columns = [desc[0] for desc in cursor.description or ()]
            finally:
                cursor.close()
        return QueryRows(columns=columns, rows=rows)

    def run(self, sql: str, params: Parameters = ()) -> RunResult:
        """Run one statement for its effect."""
        with self._lock:
            cursor = self._conn.execute(sql, params)
            try:
                # Drain RETURNING rows so the statement runs to completion
                cursor.fetchall()
                changes = max(cursor.rowcount, 0)
                last_rowid = cursor.lastrowid
            finally:
                cursor.close()
        return RunResult(changes=changes, last_insert_rowid=last_rowid)

    def close(self) -> None:
        with self._lock:
            self._conn.close()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class DatabaseRegistry:
    """Opens, caches, lists and deletes databases under ``db_dir``."""

    def __init__(self, db_dir: Path) -> None:
        self.db_dir = Path(db_dir)
        self._handles: dict[str, DatabaseHandle] = {}
        self._lock = threading.Lock()

    def ensure_dir(self) -> None:
        self.db_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        return self.db_dir / f"{validate_database_name(name)}{_DB_SUFFIX}"

    @property
    def open_count(self) -> int:
        """Number of handles currently cached."""
        with self._lock:
            return len(self._handles)

    def open(self, name: str) -> DatabaseHandle:
        """Return the cached handle for *name*, creating the database if needed."""
        path = self.path_for(name)
        with self._lock:
            return self._open_locked(name, path)

    def _open_locked(self, name: str, path: Path) -> DatabaseHandle:
        handle = self._handles.get(name)
        if handle is None:
            self.ensure_dir()
            handle = DatabaseHandle(name, path)
            self._handles[name] = handle
            logger.info("Opened database {} at {}", name, path)
        return handle

    def exists(self, name: str) -> bool:
        return self.path_for(name).exists()

    def create(self, name: str) -> DatabaseHandle:
        """Create a new database file and return its handle.

        Raises:
            DatabaseAlreadyExistsError: a file for *name* is already present.
        """
        path = self.path_for(name)
        with self._lock:
            if path.exists():
                raise DatabaseAlreadyExistsError("database already exists")
            return self._open_locked(name, path)

    def close(self, name: str) -> None:
        """Close and evict the cached handle for *name*, if any."""
        with self._lock:
            handle = self._handles.pop(name, None)
        if handle is not None:
            handle.close()

    def delete(self, name: str) -> None:
        """Close *name* and remove its files. Deleting a missing database is a no-op."""
        path = self.path_for(name)
        self.close(name)
        removed = False
        for target in (path, *(path.with_name(path.name + s) for s in _SIDECAR_SUFFIXES)):
            if target.exists():
                target.unlink()
                removed = True
        if removed:
            logger.info("Deleted database {}", name)

    def list_databases(self) -> list[str]:
        """Names of every database file in the directory, sorted."""
        if not self.db_dir.is_dir():
            return []
        names = (p.name[: -len(_DB_SUFFIX)] for p in self.db_dir.glob(f"*{_DB_SUFFIX}"))
        return sorted(n for n in names if _VALID_NAME.fullmatch(n))

    def close_all(self) -> None:
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
        for handle in handles:
            handle.close()

    def reset_all(self) -> list[str]:
        """Close every handle and delete every database file. Returns the deleted names."""
        self.close_all()
        names = self.list_databases()
        for name in names:
            self.delete(name)
        return names
