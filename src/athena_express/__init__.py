"""Async Amazon Athena client: submit, poll, and decode query results from S3."""

from athena_express.client import AthenaExpress
from athena_express.config.settings import AthenaConfig, RetryPolicy
from athena_express.dal.async_query_executor import QueryRequest
from athena_express.dal.athena.models import QueryResult
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
    "AthenaConfig",
    "AthenaExpress",
    "AthenaQueryError",
    "EngineExecutionFailedError",
    "FatalRemoteError",
    "QueryCancelledError",
    "QueryRequest",
    "QueryResult",
    "QueryTimeoutError",
    "RetryPolicy",
    "StuckExecutionExhaustedError",
    "SubmissionRetriesExhaustedError",
]
