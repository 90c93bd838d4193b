"""Domain entities and wire shapes of the pipeline protocol.

Every protocol shape that carries a ``type`` tag is modelled as a closed
pydantic union discriminated on that tag, so the use case can match on
concrete classes instead of inspecting strings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, Literal, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Discriminator, Field, Tag, field_validator

GENERIC_ERROR_CODE = "SQLITE_ERROR"

# ---------------------------------------------------------------------------
# Wire values
# ---------------------------------------------------------------------------


class NullValue(BaseModel):
    type: Literal["null"] = "null"


class IntegerValue(BaseModel):
    """A 64-bit integer carried as decimal text to survive JSON number precision."""

    type: Literal["integer"] = "integer"
    value: str | int


class FloatValue(BaseModel):
    type: Literal["float"] = "float"
    value: float


class TextValue(BaseModel):
    type: Literal["text"] = "text"
    value: str


class BlobValue(BaseModel):
    """Binary data as base64 text. Some clients send it under ``base64``."""

    type: Literal["blob"] = "blob"
    value: str = Field(validation_alias=AliasChoices("value", "base64"))


WireValue = Annotated[
    Union[NullValue, IntegerValue, FloatValue, TextValue, BlobValue],
    Field(discriminator="type"),
]


class NamedArg(BaseModel):
    name: str
    value: WireValue


# ---------------------------------------------------------------------------
# Statements
# ---------------------------------------------------------------------------


class Statement(BaseModel):
    """One SQL statement, given literally or by a stored ``sql_id``."""

    sql: str | None = None
    sql_id: int | None = None
    args: list[WireValue] = Field(default_factory=list)
    named_args: list[NamedArg] = Field(default_factory=list)
    # Accepted for client compatibility; rows are always returned for reads.
    want_rows: bool | None = None

    @field_validator("args", "named_args", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


# ---------------------------------------------------------------------------
# Batch conditions
# ---------------------------------------------------------------------------


class OkCondition(BaseModel):
    type: Literal["ok"] = "ok"
    step: int


class NotCondition(BaseModel):
    type: Literal["not"] = "not"
    cond: Condition


class AndCondition(BaseModel):
    type: Literal["and"] = "and"
    conds: list[Condition] = Field(default_factory=list)


class OrCondition(BaseModel):
    type: Literal["or"] = "or"
    conds: list[Condition] = Field(default_factory=list)


class IsAutocommitCondition(BaseModel):
    type: Literal["is_autocommit"] = "is_autocommit"


class UnknownCondition(BaseModel):
    """Any condition kind this server does not understand."""

    model_config = ConfigDict(extra="allow")

    type: str | None = None


_CONDITION_KINDS = frozenset({"ok", "not", "and", "or", "is_autocommit"})


def _condition_tag(value: Any) -> str:
    if isinstance(value, dict):
        kind = value.get("type")
    else:
        kind = getattr(value, "type", None)
    return kind if isinstance(kind, str) and kind in _CONDITION_KINDS else "unknown"


Condition = Annotated[
    Union[
        Annotated[OkCondition, Tag("ok")],
        Annotated[NotCondition, Tag("not")],
        Annotated[AndCondition, Tag("and")],
        Annotated[OrCondition, Tag("or")],
        Annotated[IsAutocommitCondition, Tag("is_autocommit")],
        Annotated[UnknownCondition, Tag("unknown")],
    ],
    Discriminator(_condition_tag),
]

NotCondition.model_rebuild()
AndCondition.model_rebuild()
OrCondition.model_rebuild()


class BatchStep(BaseModel):
    stmt: Statement
    condition: Condition | None = None


class Batch(BaseModel):
    steps: list[BatchStep] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Pipeline requests
# ---------------------------------------------------------------------------


class StoreSqlRequest(BaseModel):
    type: Literal["store_sql"] = "store_sql"
    sql_id: int
    sql: str


class CloseSqlRequest(BaseModel):
    type: Literal["close_sql"] = "close_sql"
    sql_id: int


class ExecuteRequest(BaseModel):
    type: Literal["execute"] = "execute"
    stmt: Statement


class BatchRequest(BaseModel):
    type: Literal["batch"] = "batch"
    batch: Batch


class SequenceRequest(BaseModel):
    """Run a whole SQL script without parameters or results."""

    type: Literal["sequence"] = "sequence"
    sql: str | None = None
    sql_id: int | None = None


class GetAutocommitRequest(BaseModel):
    type: Literal["get_autocommit"] = "get_autocommit"


class CloseRequest(BaseModel):
    type: Literal["close"] = "close"


PipelineRequestItem = Annotated[
    Union[
        StoreSqlRequest,
        CloseSqlRequest,
        ExecuteRequest,
        BatchRequest,
        SequenceRequest,
        GetAutocommitRequest,
        CloseRequest,
    ],
    Field(discriminator="type"),
]

REQUEST_TYPES = frozenset(
    {"store_sql", "close_sql", "execute", "batch", "sequence", "get_autocommit", "close"}
)


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


class Column(BaseModel):
    name: str
    decltype: str | None = None


class StatementResult(BaseModel):
    """Normalized outcome of one executed statement."""

    cols: list[Column] = Field(default_factory=list)
    rows: list[list[WireValue]] = Field(default_factory=list)
    affected_row_count: int = 0
    last_insert_rowid: str | None = None


class ErrorDetail(BaseModel):
    message: str
    code: str = GENERIC_ERROR_CODE


class BatchResult(BaseModel):
    step_results: list[StatementResult | None] = Field(default_factory=list)
    step_errors: list[ErrorDetail | None] = Field(default_factory=list)


class StoreSqlResponse(BaseModel):
    type: Literal["store_sql"] = "store_sql"


class CloseSqlResponse(BaseModel):
    type: Literal["close_sql"] = "close_sql"


class ExecuteResponse(BaseModel):
    type: Literal["execute"] = "execute"
    result: StatementResult


class BatchResponse(BaseModel):
    type: Literal["batch"] = "batch"
    result: BatchResult


class SequenceResponse(BaseModel):
    type: Literal["sequence"] = "sequence"


class GetAutocommitResponse(BaseModel):
    type: Literal["get_autocommit"] = "get_autocommit"
    is_autocommit: bool = True


class CloseResponse(BaseModel):
    type: Literal["close"] = "close"


StreamResponse = Annotated[
    Union[
        StoreSqlResponse,
        CloseSqlResponse,
        ExecuteResponse,
        BatchResponse,
        SequenceResponse,
        GetAutocommitResponse,
        CloseResponse,
    ],
    Field(discriminator="type"),
]


class OkResult(BaseModel):
    type: Literal["ok"] = "ok"
    response: StreamResponse


class ErrorResult(BaseModel):
    type: Literal["error"] = "error"
    error: ErrorDetail


PipelineResult = Annotated[Union[OkResult, ErrorResult], Field(discriminator="type")]


class PipelineResponse(BaseModel):
    """Body returned by every pipeline call. Batons are never issued."""

    baton: str | None = None
    base_url: str | None = None
    results: list[PipelineResult] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Engine-facing value objects
# ---------------------------------------------------------------------------


@dataclass
class QueryRows:
    """Rows returned by a read statement, in column order."""

    columns: list[str]
    rows: list[tuple] = field(default_factory=list)


@dataclass
class RunResult:
    """Effect of a write statement."""

    changes: int
    last_insert_rowid: int | None = None
