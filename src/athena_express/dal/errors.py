"""Error taxonomy surfaced by Athena query runs."""

from __future__ import annotations

from typing import Optional, Sequence

ATHENA_FATAL_REMOTE_ERROR = "ATHENA_FATAL_REMOTE_ERROR"
ATHENA_EXECUTION_FAILED = "ATHENA_EXECUTION_FAILED"
ATHENA_EXECUTION_CANCELLED = "ATHENA_EXECUTION_CANCELLED"
ATHENA_MAX_RETRIES_EXCEEDED = "ATHENA_MAX_RETRIES_EXCEEDED"
ATHENA_SUBMIT_RETRIES_EXHAUSTED = "ATHENA_SUBMIT_RETRIES_EXHAUSTED"
ATHENA_QUERY_TIMEOUT = "ATHENA_QUERY_TIMEOUT"


class AthenaQueryError(Exception):
    """Base class for every failure a query run surfaces to its caller."""

    reason_code: str = ATHENA_FATAL_REMOTE_ERROR

    def __init__(self, message: str, *, execution_id: Optional[str] = None) -> None:
        """Attach the execution id (when known) to the error instance."""
        super().__init__(message)
        self.execution_id = execution_id


class FatalRemoteError(AthenaQueryError):
    """A non-retryable error reported by Athena or S3."""

    reason_code = ATHENA_FATAL_REMOTE_ERROR

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        execution_id: Optional[str] = None,
        execution_ids: Sequence[str] = (),
    ) -> None:
        """Keep the remote error code next to the original message."""
        super().__init__(message, execution_id=execution_id)
        self.error_code = error_code
        self.execution_ids = list(execution_ids)


class EngineExecutionFailedError(AthenaQueryError):
    """Athena reported the execution as FAILED."""

    reason_code = ATHENA_EXECUTION_FAILED

    def __init__(self, reason: Optional[str], *, execution_id: Optional[str] = None) -> None:
        """Carry the engine's state-change reason verbatim."""
        super().__init__(reason or "Athena query failed.", execution_id=execution_id)
        self.reason = reason


class QueryCancelledError(AthenaQueryError):
    """The execution reached CANCELLED without this client asking for it."""

    reason_code = ATHENA_EXECUTION_CANCELLED

    def __init__(self, reason: Optional[str], *, execution_id: Optional[str] = None) -> None:
        super().__init__(
            reason or f"Athena query {execution_id} was cancelled.", execution_id=execution_id
        )
        self.reason = reason


class StuckExecutionExhaustedError(AthenaQueryError):
    """Raised when executions keep stalling after every allowed resubmission."""

    reason_code = ATHENA_MAX_RETRIES_EXCEEDED

    def __init__(
        self,
        *,
        execution_ids: Sequence[str],
        max_resubmissions: int,
        no_progress_threshold: int,
    ) -> None:
        """Record every execution id the run owned before giving up."""
        self.execution_ids = list(execution_ids)
        self.max_resubmissions = max_resubmissions
        self.no_progress_threshold = no_progress_threshold
        super().__init__(
            "Maximum retries exceeded: query made no progress after "
            f"{max_resubmissions} resubmission(s) "
            f"({no_progress_threshold} polls without progress each).",
            execution_id=self.execution_ids[-1] if self.execution_ids else None,
        )


class SubmissionRetriesExhaustedError(AthenaQueryError):
    """Transient submission errors persisted past the configured retry cap."""

    reason_code = ATHENA_SUBMIT_RETRIES_EXHAUSTED

    def __init__(self, attempts: int, error_code: Optional[str]) -> None:
        super().__init__(
            f"Athena query submission failed after {attempts} attempt(s) "
            f"(last error code: {error_code})."
        )
        self.attempts = attempts
        self.error_code = error_code


class QueryTimeoutError(AthenaQueryError, TimeoutError):
    """The caller-supplied deadline expired before the execution finished."""

    reason_code = ATHENA_QUERY_TIMEOUT

    def __init__(
        self, operation_name: str, timeout_seconds: float, *, execution_id: Optional[str] = None
    ) -> None:
        self.operation_name = operation_name
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"athena {operation_name} timed out after {float(timeout_seconds):g}s.",
            execution_id=execution_id,
        )
