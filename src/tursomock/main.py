"""FastAPI application for the Turso mock server.

This module is a thin **presentation layer**. Protocol handling lives in
the ``application`` and ``services`` packages so it can be tested without
an HTTP framework. Run it with ``tursomock serve`` or
``uvicorn --factory tursomock.main:create_app``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from tursomock import __version__
from tursomock.application.exceptions import DatabaseAlreadyExistsError, InvalidDatabaseNameError
from tursomock.application.use_cases.pipeline import PipelineUseCase
from tursomock.config import Settings, get_settings
from tursomock.logging_config import setup_logging
from tursomock.presentation.routes import databases, pipeline
from tursomock.services.database_registry import DatabaseRegistry
from tursomock.services.sql_store import SqlStatementStore
from tursomock.telemetry import setup_telemetry

# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------


async def _invalid_name_handler(request: Request, exc: InvalidDatabaseNameError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": str(exc)})


async def _already_exists_handler(request: Request, exc: DatabaseAlreadyExistsError) -> JSONResponse:
    return JSONResponse(status_code=409, content={"error": str(exc)})


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application. Uses the cached env-derived settings by default."""
    settings = settings or get_settings()
    setup_logging(level=settings.log_level, json=settings.log_json, log_file=settings.log_file)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Open the storage directory and wire services for the app lifetime."""
        registry = DatabaseRegistry(settings.resolved_db_dir())
        registry.ensure_dir()
        sql_store = SqlStatementStore()

        app.state.settings = settings
        app.state.registry = registry
        app.state.sql_store = sql_store
        app.state.pipeline = PipelineUseCase(registry=registry, sql_store=sql_store)

        logger.info("Application startup complete | db_dir={}", registry.db_dir)
        yield

        registry.close_all()
        sql_store.clear_all()
        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Turso Mock Server",
        description="Local stand-in for the Turso management API and libsql HTTP pipeline.",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InvalidDatabaseNameError, _invalid_name_handler)
    app.add_exception_handler(DatabaseAlreadyExistsError, _already_exists_handler)

    app.include_router(databases.router)
    app.include_router(pipeline.router)

    # No-op when observability is off
    setup_telemetry(app, settings)
    return app
