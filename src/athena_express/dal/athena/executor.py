import asyncio
import logging
from typing import Any, Dict, Optional

from athena_express.config.settings import RetryPolicy
from athena_express.dal.async_query_executor import ExecutionStatus, QueryRequest
from athena_express.dal.async_query_executor import QueryStatus as NormalizedStatus
from athena_express.dal.error_classification import classify_exception
from athena_express.dal.errors import SubmissionRetriesExhaustedError
from athena_express.dal.tracing import trace_query_operation

logger = logging.getLogger(__name__)


class AthenaAsyncQueryExecutor:
    """AsyncQueryExecutor backed by Athena query executions."""

    def __init__(
        self,
        region: str,
        database: str,
        output_location: Optional[str] = None,
        workgroup: Optional[str] = None,
        retry_policy: Optional[RetryPolicy] = None,
        client: Any = None,
    ) -> None:
        """Initialize executor with Athena connection settings."""
        if client is None:
            import boto3

            client = boto3.client("athena", region_name=region)
        self._client = client
        self._database = database
        self._output_location = output_location
        self._workgroup = workgroup
        self._retry_policy = retry_policy or RetryPolicy()

    async def submit(self, request: QueryRequest) -> str:
        """Submit a query, retrying transient errors after a fixed delay."""
        params = _build_start_params(
            request, self._database, self._workgroup, self._output_location
        )
        max_retries = self._retry_policy.max_submit_retries
        attempts = 0
        while True:
            attempts += 1
            try:
                execution_id = await self._start_shielded(request, params)
            except Exception as exc:
                classification = classify_exception(exc)
                if not classification.is_retryable:
                    raise
                if max_retries is not None and attempts > max_retries:
                    raise SubmissionRetriesExhaustedError(
                        attempts, classification.error_code
                    ) from exc
                logger.warning(
                    "Athena submission hit transient error %s (attempt %s); retrying in %.1fs.",
                    classification.error_code,
                    attempts,
                    self._retry_policy.transient_retry_delay_seconds,
                )
                await asyncio.sleep(self._retry_policy.transient_retry_delay_seconds)
                continue
            logger.info("Submitted Athena query %s.", execution_id)
            return execution_id

    async def _start_shielded(self, request: QueryRequest, params: Dict[str, Any]) -> str:
        """Start one execution; if the caller is cancelled mid-call, stop what it created."""
        task = asyncio.ensure_future(
            trace_query_operation(
                "athena.query.submit",
                sql=request.sql,
                operation=asyncio.to_thread(_start_query_execution, self._client, params),
            )
        )
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            await self._stop_orphaned_submission(task)
            raise

    async def _stop_orphaned_submission(self, task: "asyncio.Future[str]") -> None:
        try:
            execution_id = await task
        except Exception as exc:
            logger.debug("Cancelled Athena submission did not start an execution: %s", exc)
            return
        logger.warning("Stopping Athena query %s submitted after cancellation.", execution_id)
        try:
            await self.cancel(execution_id)
        except Exception as exc:
            logger.warning("Stopping Athena query %s failed: %s", execution_id, exc)

    async def get_status(self, execution_id: str) -> ExecutionStatus:
        """Fetch the current status of an execution."""
        response = await trace_query_operation(
            "athena.query.poll",
            sql=None,
            operation=asyncio.to_thread(_get_query_execution, self._client, execution_id),
            execution_id=execution_id,
        )
        return _parse_execution_status(execution_id, response)

    async def cancel(self, execution_id: str) -> None:
        """Cancel a running query."""
        await asyncio.to_thread(self._client.stop_query_execution, QueryExecutionId=execution_id)


def _build_start_params(
    request: QueryRequest,
    database: str,
    workgroup: Optional[str],
    output_location: Optional[str],
) -> Dict[str, Any]:
    params: Dict[str, Any] = {
        "QueryString": request.sql,
        "QueryExecutionContext": {"Database": request.database or database},
    }
    if output_location:
        params["ResultConfiguration"] = {"OutputLocation": output_location}
    if workgroup:
        params["WorkGroup"] = workgroup
    return params


def _start_query_execution(client, params: Dict[str, Any]) -> str:
    response = client.start_query_execution(**params)
    return response["QueryExecutionId"]


def _get_query_execution(client, execution_id: str) -> Dict[str, Any]:
    return client.get_query_execution(QueryExecutionId=execution_id)


def _parse_execution_status(execution_id: str, response: Dict[str, Any]) -> ExecutionStatus:
    execution = response.get("QueryExecution") or {}
    status = execution.get("Status") or {}
    statistics = execution.get("Statistics") or {}
    result_configuration = execution.get("ResultConfiguration") or {}
    return ExecutionStatus(
        execution_id=execution.get("QueryExecutionId") or execution_id,
        state=_map_status(status.get("State")),
        output_location=result_configuration.get("OutputLocation"),
        statement_type=execution.get("StatementType"),
        data_scanned_in_bytes=statistics.get("DataScannedInBytes"),
        engine_execution_time_in_millis=statistics.get("EngineExecutionTimeInMillis"),
        state_change_reason=status.get("StateChangeReason"),
    )


def _map_status(status: Optional[str]) -> NormalizedStatus:
    if status == "SUCCEEDED":
        return NormalizedStatus.SUCCEEDED
    if status == "FAILED":
        return NormalizedStatus.FAILED
    if status == "CANCELLED":
        return NormalizedStatus.CANCELLED
    return NormalizedStatus.RUNNING
