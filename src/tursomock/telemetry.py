"""Tracing for the mock server.

``TURSOMOCK_OBSERVABILITY`` selects the backend:

- ``"logfire"``: Pydantic Logfire (set ``LOGFIRE_TOKEN`` env var)
- ``"otel"``: OpenTelemetry with an OTLP HTTP exporter
- ``"off"``: no tracing (default)

Besides the per-request spans from FastAPI instrumentation, every pipeline
call gets a ``pipeline`` span carrying the database name, the number of
requests and the number of failed requests. Both backends are optional
extras and are imported only when selected.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import AbstractContextManager, nullcontext
from typing import Any

from fastapi import FastAPI
from loguru import logger

from tursomock import __version__
from tursomock.config import Settings

SpanFactory = Callable[[str, int], AbstractContextManager[Any]]

_span_factory: SpanFactory | None = None


def setup_telemetry(app: FastAPI, settings: Settings) -> None:
    """Select the tracing backend for pipeline spans and instrument *app*."""
    global _span_factory
    _span_factory = None

    mode = settings.observability.lower()
    if mode == "off":
        logger.debug("Observability disabled")
    elif mode == "logfire":
        _span_factory = _setup_logfire(app, settings)
    elif mode == "otel":
        _span_factory = _setup_otel(app, settings)
    else:
        logger.warning("Unknown observability mode '{}', disabling", mode)


def pipeline_span(db_name: str, request_count: int) -> AbstractContextManager[Any]:
    """Span around one pipeline call. Yields ``None`` when tracing is off.

    The yielded span accepts ``set_attribute(key, value)``.
    """
    if _span_factory is None:
        return nullcontext()
    return _span_factory(db_name, request_count)


def _setup_logfire(app: FastAPI, settings: Settings) -> SpanFactory:
    import logfire

    logfire.configure(service_name=settings.otel_service_name, service_version=__version__)
    logfire.instrument_fastapi(app)
    logger.info("Logfire enabled | service={}", settings.otel_service_name)

    def span(db_name: str, request_count: int) -> AbstractContextManager[Any]:
        return logfire.span("pipeline {db}", db=db_name, requests=request_count)

    return span


def _setup_otel(app: FastAPI, settings: Settings) -> SpanFactory:
    from opentelemetry import trace
    from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider(
        resource=Resource.create(
            {"service.name": settings.otel_service_name, "service.version": __version__}
        )
    )
    endpoint = f"{settings.otel_exporter_otlp_endpoint}/v1/traces"
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))

    if settings.otel_console_exporter:
        from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor

        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(app, tracer_provider=provider)
    tracer = provider.get_tracer("tursomock", __version__)

    logger.info(
        "OpenTelemetry enabled | service={} | endpoint={}", settings.otel_service_name, endpoint
    )

    def span(db_name: str, request_count: int) -> AbstractContextManager[Any]:
        return tracer.start_as_current_span(
            "pipeline",
            attributes={"tursomock.db": db_name, "tursomock.pipeline.requests": request_count},
        )

    return span

