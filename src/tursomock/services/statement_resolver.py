"""Find the SQL text a statement refers to."""

from __future__ import annotations

from tursomock.application.exceptions import NoStatementProvidedError, StatementNotFoundError
from tursomock.domain.protocols import ISqlStatementStore


def resolve_sql(
    sql: str | None,
    sql_id: int | None,
    db_name: str,
    store: ISqlStatementStore,
) -> str:
    """Return literal *sql* if given, otherwise the text stored under *sql_id*.

    Lookups are scoped to *db_name*.

    Raises:
        StatementNotFoundError: *sql_id* has no (non-empty) text for this database.
        NoStatementProvidedError: neither *sql* nor *sql_id* was supplied.
    """
    if sql:
        return sql
    if sql_id is not None:
        stored = store.get(db_name, sql_id)
        if not stored:
            raise StatementNotFoundError(sql_id)
        return stored
    raise NoStatementProvidedError()
