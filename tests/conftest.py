"""Shared fixtures for tursomock tests."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from tursomock.application.use_cases.pipeline import PipelineUseCase
from tursomock.config import Settings
from tursomock.main import create_app
from tursomock.services.database_registry import DatabaseRegistry
from tursomock.services.sql_store import SqlStatementStore


def _test_settings(tmp_path: Path) -> Settings:
    """Settings pointing at a temp directory.

    Uses ``_env_file=None`` so a developer's .env is never loaded.
    """
    return Settings(_env_file=None, db_dir=tmp_path / "db", port=8080)


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return _test_settings(tmp_path)


@pytest.fixture()
def registry(tmp_path: Path):
    """A DatabaseRegistry over a temp directory, closed after the test."""
    reg = DatabaseRegistry(tmp_path / "db")
    reg.ensure_dir()
    yield reg
    reg.close_all()


@pytest.fixture()
def sql_store() -> SqlStatementStore:
    return SqlStatementStore()


@pytest.fixture()
def pipeline(registry: DatabaseRegistry, sql_store: SqlStatementStore) -> PipelineUseCase:
    return PipelineUseCase(registry=registry, sql_store=sql_store)


@pytest.fixture()
def client(settings: Settings):
    """TestClient over a freshly built app; the lifespan runs inside the context."""
    app = create_app(settings)
    with TestClient(app) as c:
        yield c

