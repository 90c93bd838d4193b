"""Pipeline use case: runs one inbound pipeline against one database.

Requests are processed strictly in order. Each request (and each batch
step) succeeds or fails on its own: a failure becomes an error entry in
the results and never stops the requests after it. The module has **no
dependency on FastAPI**.
"""

from __future__ import annotations

from typing import Any

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from tursomock.application.exceptions import InvalidRequestError, TursoMockError
from tursomock.domain.models import (
    REQUEST_TYPES,
    Batch,
    BatchRequest,
    BatchResponse,
    BatchResult,
    CloseRequest,
    CloseResponse,
    CloseSqlRequest,
    CloseSqlResponse,
    ErrorDetail,
    ErrorResult,
    ExecuteRequest,
    ExecuteResponse,
    GetAutocommitRequest,
    GetAutocommitResponse,
    OkResult,
    PipelineRequestItem,
    PipelineResponse,
    PipelineResult,
    SequenceRequest,
    SequenceResponse,
    Statement,
    StatementResult,
    StoreSqlRequest,
    StoreSqlResponse,
    StreamResponse,
)
from tursomock.domain.protocols import IDatabaseHandle, IDatabaseRegistry, ISqlStatementStore
from tursomock.services.batch_conditions import StepOutcomes, evaluate_condition
from tursomock.services.statement_executor import execute_script, execute_statement
from tursomock.services.statement_resolver import resolve_sql

_REQUEST_ADAPTER: TypeAdapter[PipelineRequestItem] = TypeAdapter(PipelineRequestItem)


def parse_request(raw: Any) -> PipelineRequestItem:
    """Validate one raw JSON request into its typed variant.

    Raises:
        InvalidRequestError: the ``type`` is unknown or the body is malformed.
    """
    kind = raw.get("type") if isinstance(raw, dict) else None
    if not isinstance(kind, str) or kind not in REQUEST_TYPES:
        raise InvalidRequestError(f"Unknown request type: {kind!r}")
    try:
        return _REQUEST_ADAPTER.validate_python(raw)
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise InvalidRequestError(f"Invalid {kind} request: {details}") from exc


class PipelineUseCase:
    """Executes pipeline requests against databases from a registry.

    Parameters
    ----------
    registry:
        Source of open database handles, keyed by database name.
    sql_store:
        Per-database ``sql_id -> sql`` mapping shared across pipeline calls.
    """

    def __init__(self, registry: IDatabaseRegistry, sql_store: ISqlStatementStore) -> None:
        self.registry = registry
        self.sql_store = sql_store

    def execute(self, db_name: str, requests: list[Any]) -> PipelineResponse:
        """Run *requests* in order against *db_name* and collect one result per request."""
        handle = self.registry.open(db_name)
        self.sql_store.ensure(db_name)

        results: list[PipelineResult] = []
        with logger.contextualize(db=db_name):
            for index, raw in enumerate(requests):
                try:
                    request = parse_request(raw)
                    response = self._dispatch(handle, db_name, request)
                except TursoMockError as exc:
                    logger.debug("Request #{} failed: {}", index, exc)
                    results.append(ErrorResult(error=ErrorDetail(message=str(exc))))
                else:
                    results.append(OkResult(response=response))

        return PipelineResponse(results=results)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _dispatch(
        self, handle: IDatabaseHandle, db_name: str, request: PipelineRequestItem
    ) -> StreamResponse:
        if isinstance(request, StoreSqlRequest):
            self.sql_store.store(db_name, request.sql_id, request.sql)
            return StoreSqlResponse()
        if isinstance(request, CloseSqlRequest):
            self.sql_store.forget(db_name, request.sql_id)
            return CloseSqlResponse()
        if isinstance(request, ExecuteRequest):
            return ExecuteResponse(result=self._execute(handle, db_name, request.stmt))
        if isinstance(request, BatchRequest):
            return BatchResponse(result=self._run_batch(handle, db_name, request.batch))
        if isinstance(request, SequenceRequest):
            sql = resolve_sql(request.sql, request.sql_id, db_name, self.sql_store)
            execute_script(handle, sql)
            return SequenceResponse()
        if isinstance(request, GetAutocommitRequest):
            return GetAutocommitResponse(is_autocommit=True)
        if isinstance(request, CloseRequest):
            # Only the stored SQL goes away; the handle stays open
            self.sql_store.clear(db_name)
            return CloseResponse()
        raise InvalidRequestError(f"Unhandled request type: {type(request).__name__}")

    def _execute(self, handle: IDatabaseHandle, db_name: str, stmt: Statement) -> StatementResult:
        sql = resolve_sql(stmt.sql, stmt.sql_id, db_name, self.sql_store)
        return execute_statement(handle, sql, stmt)

    def _run_batch(self, handle: IDatabaseHandle, db_name: str, batch: Batch) -> BatchResult:
        """Run every step whose condition holds; steps never abort the batch."""
        outcomes: StepOutcomes = []
        result = BatchResult()

        for index, step in enumerate(batch.steps):
            if not evaluate_condition(step.condition, outcomes):
                outcomes.append(None)
                result.step_results.append(None)
                result.step_errors.append(None)
                continue

            try:
                step_result = self._execute(handle, db_name, step.stmt)
            except TursoMockError as exc:
                logger.debug("Batch step #{} failed: {}", index, exc)
                outcomes.append(False)
                result.step_results.append(None)
                result.step_errors.append(ErrorDetail(message=str(exc)))
            else:
                outcomes.append(True)
                result.step_results.append(step_result)
                result.step_errors.append(None)

        return result
