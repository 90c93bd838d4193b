"""Execute one resolved SQL statement and shape its result for the wire."""

from __future__ import annotations

import sqlite3
from typing import Any

from tursomock.application.exceptions import ExecutionError
from tursomock.domain.models import Column, Statement, StatementResult
from tursomock.domain.protocols import IDatabaseHandle, Parameters
from tursomock.services.value_codec import decode_args, decode_value, encode_row

_READ_PREFIXES = ("SELECT", "PRAGMA")
_NAMED_PREFIXES = (":", "@", "$")


def is_read_statement(sql: str) -> bool:
    """True when the statement returns rows we should fetch."""
    return sql.strip().upper().startswith(_READ_PREFIXES)


def has_multiple_statements(sql: str) -> bool:
    """Guess whether *sql* is a script of several statements.

    Counts semicolons in the raw text, so a semicolon inside a string
    literal is miscounted. Swap this for a real splitter if that matters.
    """
    trimmed = sql.strip()
    semicolons = trimmed.count(";")
    return semicolons > 1 or (semicolons == 1 and not trimmed.endswith(";"))


def _parameter_key(name: str) -> str:
    # sqlite3 looks named parameters up without their :/@/$ prefix
    if name.startswith(_NAMED_PREFIXES):
        return name[1:]
    return name


def bind_parameters(stmt: Statement) -> list[Any] | dict[str, Any]:
    """Decode the statement's arguments into engine parameters.

    Named arguments take precedence: when a client sends both kinds, the
    positional list is ignored.
    """
    if stmt.named_args:
        return {_parameter_key(arg.name): decode_value(arg.value) for arg in stmt.named_args}
    return decode_args(stmt.args)


def execute_statement(handle: IDatabaseHandle, sql: str, stmt: Statement) -> StatementResult:
    """Run *sql* with the arguments carried by *stmt*.

    Raises:
        DecodeError: an argument could not be decoded.
        ExecutionError: the engine rejected the statement.
    """
    params: Parameters = bind_parameters(stmt)

    try:
        if has_multiple_statements(sql) and not params:
            handle.execute_script(sql.strip())
            return StatementResult()

        if is_read_statement(sql):
            fetched = handle.query(sql, params)
            # Columns are only reported when a row came back
            cols = [Column(name=name) for name in fetched.columns] if fetched.rows else []
            return StatementResult(cols=cols, rows=[encode_row(row) for row in fetched.rows])

        outcome = handle.run(sql, params)
    except (sqlite3.Error, sqlite3.Warning, OverflowError) as exc:
        raise ExecutionError(str(exc)) from exc

    rowid = outcome.last_insert_rowid
    return StatementResult(
        affected_row_count=outcome.changes,
        last_insert_rowid=str(rowid) if rowid else None,
    )


def execute_script(handle: IDatabaseHandle, sql: str) -> None:
    """Run a parameterless script, as used by ``sequence`` requests."""
    try:
        handle.execute_script(sql)
    except (sqlite3.Error, sqlite3.Warning) as exc:
        raise ExecutionError(str(exc)) from exc
