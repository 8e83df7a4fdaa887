"""Athena-backed DAL components."""

from .executor import AthenaAsyncQueryExecutor
from .models import QueryResult
from .poller import CompletionPoller, RunState
from .query_runner import QueryRunner
from .result_decoder import DecodeMode, decode_lines
from .result_store import S3ResultStore

__all__ = [
    "AthenaAsyncQueryExecutor",
    "CompletionPoller",
    "DecodeMode",
    "QueryResult",
    "QueryRunner",
    "RunState",
    "S3ResultStore",
    "decode_lines",
]
