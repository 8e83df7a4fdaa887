import asyncio
import logging
from typing import Any, List, Mapping, Optional, Union

from athena_express.config.settings import AthenaConfig
from athena_express.dal.async_query_executor import (
    AsyncQueryExecutor,
    ExecutionStatus,
    QueryRequest,
)
from athena_express.dal.athena.models import QueryResult
from athena_express.dal.athena.poller import CompletionPoller, RunState
from athena_express.dal.athena.result_decoder import (
    DecodeMode,
    decode_lines,
    mode_for_statement_type,
)
from athena_express.dal.athena.result_store import S3ResultStore
from athena_express.dal.athena.statistics import data_scanned_in_mb, query_cost_in_usd
from athena_express.dal.error_classification import extract_error_code
from athena_express.dal.errors import AthenaQueryError, FatalRemoteError
from athena_express.dal.timeouts import run_with_timeout
from athena_express.dal.tracing import trace_query_operation

logger = logging.getLogger(__name__)

QueryInput = Union[QueryRequest, str, Mapping[str, Any]]


class QueryRunner:
    """Submit, poll, fetch and decode one Athena query per ``run`` call."""

    def __init__(
        self,
        config: AthenaConfig,
        executor: AsyncQueryExecutor,
        result_store: S3ResultStore,
    ) -> None:
        self._config = config
        self._executor = executor
        self._result_store = result_store
        self._poller = CompletionPoller(executor, config.retry_policy)

    async def run(self, query: QueryInput) -> QueryResult:
        """Run a query to completion and return its decoded records."""
        request = QueryRequest.coerce(query)
        return await trace_query_operation(
            "athena.query.run",
            sql=request.sql,
            operation=self._run(request),
        )

    async def _run(self, request: QueryRequest) -> QueryResult:
        run_state: Optional[RunState] = None

        async def _submit_and_poll() -> ExecutionStatus:
            nonlocal run_state
            execution_id = await self._executor.submit(request)
            run_state = self._poller.new_run_state(request, execution_id)
            return await self._poller.poll(run_state)

        async def _cancel_live_execution() -> None:
            if run_state is not None and run_state.live:
                logger.warning("Stopping Athena query %s after timeout.", run_state.execution_id)
                await self._executor.cancel(run_state.execution_id)

        try:
            status = await run_with_timeout(
                _submit_and_poll,
                self._config.query_timeout_seconds,
                cancel=_cancel_live_execution,
                operation_name="query",
                execution_id=lambda: _live_execution_id(run_state),
            )
            statement_type = status.statement_type or "DML"
            mode = mode_for_statement_type(statement_type, self._config.format_json)
            items = await self._fetch(status, mode)
        except AthenaQueryError:
            raise
        except Exception as exc:
            raise FatalRemoteError(
                str(exc),
                error_code=extract_error_code(exc),
                execution_id=_live_execution_id(run_state),
                execution_ids=run_state.execution_ids if run_state else (),
            ) from exc

        result = QueryResult(
            items=items, execution_id=status.execution_id, statement_type=statement_type
        )
        if self._config.get_stats:
            _attach_statistics(result, status)
        return result

    async def _fetch(self, status: ExecutionStatus, mode: DecodeMode) -> List[Any]:
        if not status.output_location:
            raise FatalRemoteError(
                f"Athena query {status.execution_id} succeeded without a result location.",
                execution_id=status.execution_id,
            )

        def _read() -> List[Any]:
            return list(decode_lines(self._result_store.iter_lines(status.output_location), mode))

        items = await trace_query_operation(
            "athena.query.fetch",
            sql=None,
            operation=asyncio.to_thread(_read),
            execution_id=status.execution_id,
        )
        logger.info(
            "Decoded %s %s record(s) for Athena query %s.",
            len(items),
            mode.value,
            status.execution_id,
        )
        return items


def _live_execution_id(run_state: Optional[RunState]) -> Optional[str]:
    if run_state is None or not run_state.live:
        return None
    return run_state.execution_id


def _attach_statistics(result: QueryResult, status: ExecutionStatus) -> None:
    if status.data_scanned_in_bytes is not None:
        data_in_mb = data_scanned_in_mb(status.data_scanned_in_bytes)
        result.data_scanned_in_mb = data_in_mb
        result.query_cost_in_usd = query_cost_in_usd(data_in_mb)
    result.engine_execution_time_in_millis = status.engine_execution_time_in_millis
    result.count = len(result.items)
