"""Tests for the file-backed database registry."""

import threading
from pathlib import Path

import pytest

from tursomock.application.exceptions import DatabaseAlreadyExistsError, InvalidDatabaseNameError
from tursomock.services.database_registry import (
    DatabaseRegistry,
    split_statements,
    validate_database_name,
)


class TestValidateDatabaseName:
    @pytest.mark.parametrize("name", ["default", "my-db", "db_2", "ABC"])
    def test_accepts(self, name: str):
        assert validate_database_name(name) == name

    @pytest.mark.parametrize("name", ["", "../etc", "a.b", "a b", "a/b"])
    def test_rejects(self, name: str):
        with pytest.raises(InvalidDatabaseNameError):
            validate_database_name(name)


class TestDatabaseRegistry:
    def test_open_creates_file(self, registry: DatabaseRegistry):
        registry.open("alpha")
        assert (registry.db_dir / "alpha.db").exists()
        assert registry.exists("alpha")

    def test_open_is_cached(self, registry: DatabaseRegistry):
        assert registry.open("alpha") is registry.open("alpha")
        assert registry.open_count == 1

    def test_open_creates_missing_directory(self, tmp_path: Path):
        reg = DatabaseRegistry(tmp_path / "nested" / "dir")
        try:
            reg.open("x")
            assert (tmp_path / "nested" / "dir" / "x.db").exists()
        finally:
            reg.close_all()

    def test_create_rejects_existing(self, registry: DatabaseRegistry):
        registry.create("alpha")
        with pytest.raises(DatabaseAlreadyExistsError):
            registry.create("alpha")

    def test_data_persists_across_reopen(self, registry: DatabaseRegistry):
        handle = registry.open("alpha")
        handle.execute_script("CREATE TABLE t (x INTEGER); INSERT INTO t VALUES (1);")
        registry.close("alpha")
        rows = registry.open("alpha").query("SELECT x FROM t")
        assert rows.rows == [(1,)]

    def test_delete_removes_files(self, registry: DatabaseRegistry):
        registry.open("alpha").execute_script("CREATE TABLE t (x INTEGER);")
        registry.delete("alpha")
        assert not registry.exists("alpha")
        assert not list(registry.db_dir.glob("alpha.db*"))
        assert registry.open_count == 0

    def test_delete_missing_is_noop(self, registry: DatabaseRegistry):
        registry.delete("ghost")

    def test_delete_then_open_is_empty(self, registry: DatabaseRegistry):
        registry.open("alpha").execute_script("CREATE TABLE t (x INTEGER);")
        registry.delete("alpha")
        rows = registry.open("alpha").query("SELECT name FROM sqlite_master WHERE type='table'")
        assert rows.rows == []

    def test_list_databases_sorted(self, registry: DatabaseRegistry):
        registry.open("zeta")
        registry.open("alpha")
        assert registry.list_databases() == ["alpha", "zeta"]

    def test_list_missing_directory(self, tmp_path: Path):
        assert DatabaseRegistry(tmp_path / "missing").list_databases() == []

    def test_reset_all(self, registry: DatabaseRegistry):
        registry.open("a")
        registry.open("b")
        assert registry.reset_all() == ["a", "b"]
        assert registry.list_databases() == []
        assert registry.open_count == 0

    def test_run_reports_changes_and_rowid(self, registry: DatabaseRegistry):
        handle = registry.open("alpha")
        handle.execute_script("CREATE TABLE t (id INTEGER PRIMARY KEY, v TEXT);")
        outcome = handle.run("INSERT INTO t (v) VALUES (?)", ["x"])
        assert outcome.changes == 1
        assert outcome.last_insert_rowid == 1

    def test_concurrent_create_admits_one(self, registry: DatabaseRegistry):
        barrier = threading.Barrier(8)
        outcomes: list[str] = []

        def attempt() -> None:
            barrier.wait()
            try:
                registry.create("race")
            except DatabaseAlreadyExistsError:
                outcomes.append("conflict")
            else:
                outcomes.append("created")

        threads = [threading.Thread(target=attempt) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert outcomes.count("created") == 1
        assert outcomes.count("conflict") == 7


class TestSplitStatements:
    def test_two_statements(self):
        assert split_statements("CREATE TABLE a (x); INSERT INTO a VALUES (1);") == [
            "CREATE TABLE a (x);",
            "INSERT INTO a VALUES (1);",
        ]

    def test_semicolon_inside_literal(self):
        assert split_statements("INSERT INTO a VALUES ('x;y'); SELECT 1") == [
            "INSERT INTO a VALUES ('x;y');",
            "SELECT 1",
        ]

    def test_trigger_body_kept_whole(self):
        sql = (
            "CREATE TRIGGER trg AFTER INSERT ON a BEGIN "
            "INSERT INTO b VALUES (1); INSERT INTO b VALUES (2); END;"
        )
        assert split_statements(sql) == [sql]

    def test_empty_statements_dropped(self):
        assert split_statements(" ; ;SELECT 1;") == ["SELECT 1;"]


class TestExecuteScript:
    def test_script_keeps_open_transaction(self, registry: DatabaseRegistry):
        handle = registry.open("tx")
        handle.execute_script("CREATE TABLE t (x INTEGER);")
        handle.run("BEGIN")
        handle.execute_script("INSERT INTO t VALUES (1); INSERT INTO t VALUES (2);")
        handle.run("ROLLBACK")
        assert handle.query("SELECT COUNT(*) FROM t").rows == [(0,)]

    def test_trigger_script(self, registry: DatabaseRegistry):
        handle = registry.open("trg")
        handle.execute_script(
            "CREATE TABLE a (x); CREATE TABLE b (y);"
            "CREATE TRIGGER trg AFTER INSERT ON a BEGIN INSERT INTO b VALUES (new.x); END;"
            "INSERT INTO a VALUES (7);"
        )
        assert handle.query("SELECT y FROM b").rows == [(7,)]
