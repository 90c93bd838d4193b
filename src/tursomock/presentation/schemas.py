"""HTTP request/response schemas (Pydantic models) for the REST API.

The management API mirrors the platform's PascalCase field names, so the
response models declare them verbatim.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# ---------------------------------------------------------------------------
# Management API
# ---------------------------------------------------------------------------


class CreateDatabaseRequest(BaseModel):
    """Request body for POST /v1/organizations/{org}/databases."""

    name: str = Field(description="Logical database name, also its subdomain label")
    group: str | None = Field(default=None, description="Placement group (accepted, unused)")


class DatabaseInfo(BaseModel):
    """One database as reported by the management API."""

    DbId: str
    HostName: str
    Name: str


class CreateDatabaseResponse(BaseModel):
    database: DatabaseInfo


class ListDatabasesResponse(BaseModel):
    databases: list[DatabaseInfo] = Field(default_factory=list)


class DeleteDatabaseResponse(BaseModel):
    success: bool = True


class HealthResponse(BaseModel):
    status: str = "ok"
    databases: int = Field(description="Number of open database handles")


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class PipelineBody(BaseModel):
    """Request body for the pipeline endpoints.

    Requests stay raw here: each one is validated by the pipeline use case
    so a bad entry becomes an error result instead of rejecting the call.
    """

    baton: str | None = None
    requests: list[Any] = Field(default_factory=list)
