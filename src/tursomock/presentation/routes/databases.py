"""Management routes for databases, plus the health check."""

from __future__ import annotations

import time

from fastapi import APIRouter, Request
from loguru import logger

from tursomock.config import Settings
from tursomock.presentation.schemas import (
    CreateDatabaseRequest,
    CreateDatabaseResponse,
    DatabaseInfo,
    DeleteDatabaseResponse,
    HealthResponse,
    ListDatabasesResponse,
)
from tursomock.services.database_registry import DatabaseRegistry
from tursomock.services.sql_store import SqlStatementStore

router = APIRouter(tags=["databases"])


@router.get("/health", response_model=HealthResponse)
async def health(raw_request: Request):
    """Liveness check reporting how many database handles are open."""
    registry: DatabaseRegistry = raw_request.app.state.registry
    return HealthResponse(databases=registry.open_count)


@router.post("/v1/organizations/{org}/databases", response_model=CreateDatabaseResponse)
def create_database(org: str, request: CreateDatabaseRequest, raw_request: Request):
    """Create an empty database. Responds 409 if one with that name exists."""
    settings: Settings = raw_request.app.state.settings
    registry: DatabaseRegistry = raw_request.app.state.registry

    registry.create(request.name)

    logger.info("POST /v1/organizations/{}/databases | name={}", org, request.name)
    return CreateDatabaseResponse(
        database=DatabaseInfo(
            DbId=f"mock-{request.name}-{int(time.time() * 1000)}",
            HostName=settings.host_name_for(request.name),
            Name=request.name,
        )
    )


@router.get("/v1/organizations/{org}/databases", response_model=ListDatabasesResponse)
def list_databases(org: str, raw_request: Request):
    """List every database file in the storage directory."""
    settings: Settings = raw_request.app.state.settings
    registry: DatabaseRegistry = raw_request.app.state.registry
    return ListDatabasesResponse(
        databases=[
            DatabaseInfo(DbId=f"mock-{name}", HostName=settings.host_name_for(name), Name=name)
            for name in registry.list_databases()
        ]
    )


@router.delete("/v1/organizations/{org}/databases/{name}", response_model=DeleteDatabaseResponse)
def delete_database(org: str, name: str, raw_request: Request):
    """Delete a database and its stored SQL. Deleting a missing database succeeds."""
    registry: DatabaseRegistry = raw_request.app.state.registry
    sql_store: SqlStatementStore = raw_request.app.state.sql_store

    registry.delete(name)
    sql_store.drop(name)

    logger.info("DELETE /v1/organizations/{}/databases/{}", org, name)
    return DeleteDatabaseResponse()
