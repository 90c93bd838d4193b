"""Application-level exceptions.

These are protocol and storage errors, not HTTP errors. The pipeline use
case turns them into per-request error results; the presentation layer
translates the management ones into HTTP responses.
"""


class TursoMockError(Exception):
    """Base class for every error the pipeline reports back to the client."""


class DecodeError(TursoMockError, ValueError):
    """Raised when a wire value cannot be converted to a native value."""


class StatementNotFoundError(TursoMockError, LookupError):
    """Raised when a ``sql_id`` has no stored text for the target database."""

    def __init__(self, sql_id: int) -> None:
        super().__init__(f"SQL with id {sql_id} not found")
        self.sql_id = sql_id


class NoStatementProvidedError(TursoMockError):
    """Raised when a statement carries neither ``sql`` nor ``sql_id``."""

    def __init__(self) -> None:
        super().__init__("No SQL statement provided")


class ExecutionError(TursoMockError):
    """Raised when the engine fails to prepare, bind or run a statement."""


class InvalidRequestError(TursoMockError):
    """Raised for an unknown or malformed pipeline request."""


class InvalidDatabaseNameError(ValueError):
    """Raised when a database name cannot be used as a file name."""


class DatabaseAlreadyExistsError(Exception):
    """Raised when creating a database whose backing file already exists."""
