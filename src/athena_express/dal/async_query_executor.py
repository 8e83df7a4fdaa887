from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Protocol, Union, runtime_checkable


class QueryStatus(str, Enum):
    """Normalized async query lifecycle states."""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class QueryRequest:
    """Query text plus optional target database; immutable once submitted."""

    sql: str
    database: Optional[str] = None

    @classmethod
    def coerce(cls, query: Union["QueryRequest", str, Mapping[str, Any], None]) -> "QueryRequest":
        """Build a request from a string, a ``{"sql", "db"}`` mapping, or a request."""
        if isinstance(query, QueryRequest):
            request = query
        elif isinstance(query, str):
            request = cls(sql=query)
        elif isinstance(query, Mapping):
            request = cls(sql=query.get("sql") or "", database=query.get("db") or None)
        else:
            raise ValueError("SQL query is missing")
        if not request.sql or not request.sql.strip():
            raise ValueError("SQL query is missing")
        return request


@dataclass(frozen=True)
class ExecutionStatus:
    """Snapshot of one execution as reported by the engine."""

    execution_id: str
    state: QueryStatus
    output_location: Optional[str] = None
    statement_type: Optional[str] = None
    data_scanned_in_bytes: Optional[int] = None
    engine_execution_time_in_millis: Optional[int] = None
    state_change_reason: Optional[str] = None


@runtime_checkable
class AsyncQueryExecutor(Protocol):
    """Protocol for async/job-style query execution."""

    async def submit(self, request: QueryRequest) -> str:
        """Submit a query for asynchronous execution and return an execution id."""
        ...

    async def get_status(self, execution_id: str) -> ExecutionStatus:
        """Fetch the status of an in-flight execution (single remote call)."""
        ...

    async def cancel(self, execution_id: str) -> None:
        """Cancel a running execution."""
        ...
