import asyncio
import types

import pytest

from athena_express.config.settings import RetryPolicy
from athena_express.dal.async_query_executor import QueryRequest, QueryStatus
from athena_express.dal.athena.executor import AthenaAsyncQueryExecutor, _map_status
from athena_express.dal.errors import SubmissionRetriesExhaustedError
from tests._support.fake_athena import (
    FakeAthenaClient,
    SlowStartAthenaClient,
    client_error,
    execution_response,
)


def _executor(client, retry_policy=None, **kwargs):
    return AthenaAsyncQueryExecutor(
        region="us-east-1",
        database=kwargs.pop("database", "db"),
        output_location=kwargs.pop("output_location", "s3://bucket/out/"),
        workgroup=kwargs.pop("workgroup", None),
        retry_policy=retry_policy,
        client=client,
    )


@pytest.mark.asyncio
async def test_submit_builds_start_params():
    """Validate submission parameters built from the request."""
    client = FakeAthenaClient()
    executor = _executor(client, workgroup="primary")

    execution_id = await executor.submit(QueryRequest(sql="SELECT 1"))

    assert execution_id == "exec-1"
    assert client.start_calls == [
        {
            "QueryString": "SELECT 1",
            "QueryExecutionContext": {"Database": "db"},
            "ResultConfiguration": {"OutputLocation": "s3://bucket/out/"},
            "WorkGroup": "primary",
        }
    ]


@pytest.mark.asyncio
async def test_submit_prefers_request_database_and_omits_unset_options():
    client = FakeAthenaClient()
    executor = _executor(client, output_location=None)

    await executor.submit(QueryRequest(sql="SHOW TABLES", database="sales"))

    assert client.start_calls == [
        {"QueryString": "SHOW TABLES", "QueryExecutionContext": {"Database": "sales"}}
    ]


@pytest.mark.asyncio
async def test_submit_fatal_error_is_raised_without_retry(recorded_sleeps, retry_policy):
    """A fatal error on the first attempt surfaces with zero retries and zero delay."""
    error = client_error("InvalidRequestException")
    client = FakeAthenaClient(start_outcomes=[error])
    executor = _executor(client, retry_policy)

    with pytest.raises(Exception) as exc_info:
        await executor.submit(QueryRequest(sql="SELEC 1"))

    assert exc_info.value is error
    assert len(client.start_calls) == 1
    assert recorded_sleeps == []


@pytest.mark.asyncio
async def test_submit_retries_transient_errors_with_fixed_delay(recorded_sleeps, retry_policy):
    client = FakeAthenaClient(
        start_outcomes=[
            client_error("ThrottlingException"),
            client_error("TooManyRequestsException"),
            None,
        ]
    )
    executor = _executor(client, retry_policy)

    execution_id = await executor.submit(QueryRequest(sql="SELECT 1"))

    assert execution_id == "exec-3"
    assert recorded_sleeps == [2.0, 2.0]
    # Retried attempts are identical to the first one.
    assert client.start_calls[0] == client.start_calls[1] == client.start_calls[2]


@pytest.mark.asyncio
async def test_submit_gives_up_after_retry_cap(recorded_sleeps):
    client = FakeAthenaClient(start_outcomes=[client_error("ThrottlingException")])
    policy = RetryPolicy(transient_retry_delay_seconds=2.0, max_submit_retries=3)
    executor = _executor(client, policy)

    with pytest.raises(SubmissionRetriesExhaustedError) as exc_info:
        await executor.submit(QueryRequest(sql="SELECT 1"))

    assert exc_info.value.attempts == 4
    assert exc_info.value.error_code == "ThrottlingException"
    assert len(client.start_calls) == 4
    assert recorded_sleeps == [2.0, 2.0, 2.0]


@pytest.mark.asyncio
async def test_submit_without_cap_keeps_retrying(recorded_sleeps):
    throttled = [client_error("ThrottlingException") for _ in range(25)]
    client = FakeAthenaClient(start_outcomes=[*throttled, None])
    policy = RetryPolicy(max_submit_retries=None)
    executor = _executor(client, policy)

    assert await executor.submit(QueryRequest(sql="SELECT 1")) == "exec-26"
    assert len(recorded_sleeps) == 25


@pytest.mark.asyncio
async def test_get_status_parses_execution():
    client = FakeAthenaClient(
        status_outcomes=[
            execution_response(
                "exec-9",
                "SUCCEEDED",
                output_location="s3://bucket/out/exec-9.csv",
                statement_type="DDL",
                data_scanned_in_bytes=2048,
                engine_execution_time_in_millis=321,
            )
        ]
    )
    executor = _executor(client)

    status = await executor.get_status("exec-9")

    assert status.state == QueryStatus.SUCCEEDED
    assert status.output_location == "s3://bucket/out/exec-9.csv"
    assert status.statement_type == "DDL"
    assert status.data_scanned_in_bytes == 2048
    assert status.engine_execution_time_in_millis == 321


@pytest.mark.asyncio
async def test_cancel_calls_stop_query_execution():
    client = FakeAthenaClient()
    executor = _executor(client)

    await executor.cancel("exec-1")

    assert client.stopped_ids == ["exec-1"]


@pytest.mark.asyncio
async def test_cancelled_submit_stops_execution_started_afterwards():
    """An execution created after the caller gave up is stopped, not left running."""
    client = SlowStartAthenaClient(delay_seconds=0.2)
    executor = _executor(client)

    task = asyncio.ensure_future(executor.submit(QueryRequest(sql="SELECT 1")))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(client.start_calls) == 1
    assert client.stopped_ids == ["exec-1"]


@pytest.mark.asyncio
async def test_executor_builds_boto3_client_when_not_injected(monkeypatch):
    """The boto3 Athena client is created for the configured region."""
    fake_client = FakeAthenaClient()
    calls = []

    def _client(service, region_name=None):
        calls.append((service, region_name))
        return fake_client

    monkeypatch.setitem(__import__("sys").modules, "boto3", types.SimpleNamespace(client=_client))

    executor = AthenaAsyncQueryExecutor(region="eu-west-1", database="db")

    assert await executor.submit(QueryRequest(sql="SELECT 1")) == "exec-1"
    assert calls == [("athena", "eu-west-1")]


def test_athena_status_mapping():
    """Verify all Athena status values map correctly."""
    assert _map_status("SUCCEEDED") == QueryStatus.SUCCEEDED
    assert _map_status("FAILED") == QueryStatus.FAILED
    assert _map_status("CANCELLED") == QueryStatus.CANCELLED
    assert _map_status("QUEUED") == QueryStatus.RUNNING
    assert _map_status("RUNNING") == QueryStatus.RUNNING
    assert _map_status(None) == QueryStatus.RUNNING
