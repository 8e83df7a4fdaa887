"""Data access layer for Athena query execution.

The DAL owns remote error classification, the error taxonomy surfaced to
callers, and the Athena submit/poll/fetch implementation under
``athena_express.dal.athena``.
"""

from athena_express.dal.errors import (
    AthenaQueryError,
    EngineExecutionFailedError,
    FatalRemoteError,
    QueryCancelledError,
    QueryTimeoutError,
    StuckExecutionExhaustedError,
    SubmissionRetriesExhaustedError,
)

__all__ = [
    "AthenaQueryError",
    "EngineExecutionFailedError",
    "FatalRemoteError",
    "QueryCancelledError",
    "QueryTimeoutError",
    "StuckExecutionExhaustedError",
    "SubmissionRetriesExhaustedError",
]
