"""Tests for single-statement execution and result shaping."""

import pytest

from tursomock.application.exceptions import DecodeError, ExecutionError
from tursomock.domain.models import Column, IntegerValue, Statement, TextValue
from tursomock.services.database_registry import DatabaseHandle, DatabaseRegistry
from tursomock.services.statement_executor import (
    bind_parameters,
    execute_statement,
    has_multiple_statements,
    is_read_statement,
)


@pytest.fixture()
def handle(registry: DatabaseRegistry) -> DatabaseHandle:
    h = registry.open("exec")
    h.execute_script("CREATE TABLE t (id INTEGER PRIMARY KEY, name TEXT);")
    return h


def _stmt(sql: str, **kwargs) -> Statement:
    return Statement.model_validate({"sql": sql, **kwargs})


class TestClassification:
    @pytest.mark.parametrize("sql", ["SELECT 1", "  select * from t", "PRAGMA table_info(t)"])
    def test_reads(self, sql: str):
        assert is_read_statement(sql)

    @pytest.mark.parametrize("sql", ["INSERT INTO t VALUES (1)", "WITH x AS (SELECT 1) SELECT * FROM x"])
    def test_non_reads(self, sql: str):
        assert not is_read_statement(sql)

    def test_single_statement_with_trailing_semicolon(self):
        assert not has_multiple_statements("SELECT 1;")

    def test_two_statements(self):
        assert has_multiple_statements("CREATE TABLE a (x); CREATE TABLE b (y)")

    def test_two_statements_trailing_semicolon(self):
        assert has_multiple_statements("CREATE TABLE a (x); CREATE TABLE b (y);")


class TestBindParameters:
    def test_positional(self):
        stmt = _stmt("SELECT ?", args=[{"type": "integer", "value": "1"}])
        assert bind_parameters(stmt) == [1]

    def test_named_strips_prefix(self):
        stmt = _stmt(
            "SELECT :a, @b, $c",
            named_args=[
                {"name": ":a", "value": {"type": "integer", "value": "1"}},
                {"name": "@b", "value": {"type": "text", "value": "x"}},
                {"name": "$c", "value": {"type": "null"}},
            ],
        )
        assert bind_parameters(stmt) == {"a": 1, "b": "x", "c": None}

    def test_named_wins_over_positional(self):
        stmt = _stmt(
            "SELECT :a",
            args=[{"type": "integer", "value": "9"}],
            named_args=[{"name": "a", "value": {"type": "integer", "value": "1"}}],
        )
        assert bind_parameters(stmt) == {"a": 1}

    def test_bad_argument_raises(self):
        stmt = _stmt("SELECT ?", args=[{"type": "integer", "value": "x"}])
        with pytest.raises(DecodeError):
            bind_parameters(stmt)


class TestExecuteStatement:
    def test_write_reports_counts(self, handle: DatabaseHandle):
        stmt = _stmt("INSERT INTO t (name) VALUES (?)", args=[{"type": "text", "value": "a"}])
        result = execute_statement(handle, stmt.sql, stmt)
        assert result.affected_row_count == 1
        assert result.last_insert_rowid == "1"
        assert result.cols == []
        assert result.rows == []

    def test_read_reports_cols_and_rows(self, handle: DatabaseHandle):
        handle.run("INSERT INTO t (name) VALUES ('a')")
        stmt = _stmt("SELECT id, name FROM t")
        result = execute_statement(handle, stmt.sql, stmt)
        assert result.cols == [Column(name="id"), Column(name="name")]
        assert result.rows == [[IntegerValue(value="1"), TextValue(value="a")]]
        assert result.affected_row_count == 0
        assert result.last_insert_rowid is None

    def test_empty_read_has_no_cols(self, handle: DatabaseHandle):
        stmt = _stmt("SELECT id FROM t")
        result = execute_statement(handle, stmt.sql, stmt)
        assert result.cols == []
        assert result.rows == []

    def test_update_without_insert_has_no_rowid(self, handle: DatabaseHandle):
        stmt = _stmt("UPDATE t SET name = 'z'")
        result = execute_statement(handle, stmt.sql, stmt)
        assert result.affected_row_count == 0
        assert result.last_insert_rowid is None

    def test_multi_statement_script(self, handle: DatabaseHandle):
        sql = "INSERT INTO t (name) VALUES ('a'); INSERT INTO t (name) VALUES ('b');"
        result = execute_statement(handle, sql, _stmt(sql))
        assert result.affected_row_count == 0
        assert handle.query("SELECT COUNT(*) FROM t").rows == [(2,)]

    def test_engine_error_wrapped(self, handle: DatabaseHandle):
        stmt = _stmt("SELECT * FROM missing_table")
        with pytest.raises(ExecutionError, match="no such table"):
            execute_statement(handle, stmt.sql, stmt)

    def test_syntax_error_wrapped(self, handle: DatabaseHandle):
        stmt = _stmt("INSRT INTO t VALUES (1)")
        with pytest.raises(ExecutionError):
            execute_statement(handle, stmt.sql, stmt)
