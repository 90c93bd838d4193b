"""Domain service interfaces (ports).

The pipeline use case depends on these protocols, not on the concrete
SQLite-backed classes in ``tursomock.services``.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from tursomock.domain.models import QueryRows, RunResult

Parameters = Sequence[Any] | Mapping[str, Any]

# ---------------------------------------------------------------------------
# Database handles
# ---------------------------------------------------------------------------


@runtime_checkable
class IDatabaseHandle(Protocol):
    """One open engine connection for a logical database.

    Implementations: DatabaseHandle (sqlite3-backed).
    """

    name: str

    def execute_script(self, sql: str) -> None: ...

    def query(self, sql: str, params: Parameters = ()) -> QueryRows: ...

    def run(self, sql: str, params: Parameters = ()) -> RunResult: ...

    def close(self) -> None: ...


@runtime_checkable
class IDatabaseRegistry(Protocol):
    """Opens, caches and deletes per-tenant database handles by name.

    Implementations: DatabaseRegistry (one file per database in a directory).
    """

    def open(self, name: str) -> IDatabaseHandle: ...

    def exists(self, name: str) -> bool: ...

    def delete(self, name: str) -> None: ...

    def list_databases(self) -> list[str]: ...


# ---------------------------------------------------------------------------
# Stored SQL
# ---------------------------------------------------------------------------


@runtime_checkable
class ISqlStatementStore(Protocol):
    """Per-database mapping from integer ``sql_id`` to SQL text.

    Implementations: SqlStatementStore (in-memory, lock-guarded).
    """

    def ensure(self, db_name: str) -> None: ...

    def store(self, db_name: str, sql_id: int, sql: str) -> None: ...

    def get(self, db_name: str, sql_id: int) -> str | None: ...

    def forget(self, db_name: str, sql_id: int) -> None: ...

    def clear(self, db_name: str) -> None: ...
