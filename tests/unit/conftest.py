"""Unit test environment helpers."""

import asyncio

import pytest

from athena_express.config.settings import RetryPolicy

_ATHENA_ENV_VARS = (
    "AWS_REGION",
    "AWS_DEFAULT_REGION",
    "ATHENA_DATABASE",
    "ATHENA_OUTPUT_LOCATION",
    "ATHENA_WORKGROUP",
    "ATHENA_POLL_INTERVAL_MS",
    "ATHENA_FORMAT_JSON",
    "ATHENA_GET_STATS",
    "ATHENA_QUERY_TIMEOUT_SECONDS",
    "ATHENA_TRANSIENT_RETRY_DELAY_MS",
    "ATHENA_NO_PROGRESS_THRESHOLD",
    "ATHENA_MAX_RESUBMISSIONS",
    "ATHENA_MAX_SUBMIT_RETRIES",
    "ATHENA_TRACE_QUERIES",
    "OTEL_EXPORTER_OTLP_ENDPOINT",
    "OTEL_EXPORTER_OTLP_TRACES_ENDPOINT",
)


@pytest.fixture(autouse=True)
def _minimal_env(monkeypatch):
    """Isolate unit tests from Athena/OTEL settings in the host environment."""
    for name in _ATHENA_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.fixture
def recorded_sleeps(monkeypatch):
    """Replace asyncio.sleep with a recorder that only yields to the loop."""
    original_sleep = asyncio.sleep
    delays = []

    async def _fake_sleep(delay, result=None):
        delays.append(delay)
        await original_sleep(0)
        return result

    monkeypatch.setattr(asyncio, "sleep", _fake_sleep)
    return delays


@pytest.fixture
def retry_policy():
    """Default thresholds with the production delays, for use with recorded_sleeps."""
    return RetryPolicy(
        poll_interval_seconds=0.2,
        transient_retry_delay_seconds=2.0,
        no_progress_threshold=3,
        max_resubmissions=2,
        max_submit_retries=10,
    )
