"""Pipeline routes: execute batches of requests against one database."""

from __future__ import annotations

import ipaddress

from fastapi import APIRouter, Request
from loguru import logger

from tursomock.application.use_cases.pipeline import PipelineUseCase
from tursomock.config import Settings
from tursomock.domain.models import ErrorResult, PipelineResponse
from tursomock.presentation.schemas import PipelineBody
from tursomock.telemetry import pipeline_span

router = APIRouter(tags=["pipeline"])


def database_from_host(host: str, default: str) -> str:
    """Pick the database name from the first label of a ``Host`` header.

    ``mydb.localhost:8080`` selects ``mydb``. Bare hosts, IP literals and a
    missing header fall back to *default*.
    """
    if not host or host.startswith("["):
        return default
    hostname = host.split(":", 1)[0]
    try:
        ipaddress.ip_address(hostname)
    except ValueError:
        pass
    else:
        return default
    label, dot, _ = hostname.partition(".")
    return label if dot and label else default


def _run_pipeline(raw_request: Request, db_name: str, body: PipelineBody) -> PipelineResponse:
    pipeline: PipelineUseCase = raw_request.app.state.pipeline
    logger.info("POST pipeline | db={} requests={}", db_name, len(body.requests))
    with pipeline_span(db_name, len(body.requests)) as span:
        response = pipeline.execute(db_name, body.requests)
        if span is not None:
            failed = sum(1 for result in response.results if isinstance(result, ErrorResult))
            span.set_attribute("tursomock.pipeline.errors", failed)
    return response


@router.post("/v2/pipeline", response_model=PipelineResponse)
def host_pipeline(body: PipelineBody, raw_request: Request):
    """Run a pipeline against the database named by the request's subdomain."""
    settings: Settings = raw_request.app.state.settings
    db_name = database_from_host(raw_request.headers.get("host", ""), settings.default_database)
    return _run_pipeline(raw_request, db_name, body)


@router.post("/{db_name}/v2/pipeline", response_model=PipelineResponse)
def path_pipeline(db_name: str, body: PipelineBody, raw_request: Request):
    """Run a pipeline against the database named in the path."""
    return _run_pipeline(raw_request, db_name, body)
