"""Completion polling with stuck-execution recovery.

The poller checks an execution's status until it reaches a terminal state.
Executions occasionally wedge on the engine side: the query is accepted but
never progresses. After ``no_progress_threshold`` consecutive non-terminal
polls the poller stops the execution and resubmits the original query, up to
``max_resubmissions`` times, and then gives up with
``StuckExecutionExhaustedError``.

All counters live on a ``RunState`` created for a single run, so concurrent
runs never observe each other's recovery progress.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List

from athena_express.config.settings import RetryPolicy
from athena_express.dal.async_query_executor import (
    AsyncQueryExecutor,
    ExecutionStatus,
    QueryRequest,
    QueryStatus,
)
from athena_express.dal.error_classification import classify_exception
from athena_express.dal.errors import (
    EngineExecutionFailedError,
    QueryCancelledError,
    StuckExecutionExhaustedError,
)

logger = logging.getLogger(__name__)


@dataclass
class RunState:
    """Mutable state owned by exactly one in-flight query run."""

    request: QueryRequest
    execution_id: str
    poll_interval_seconds: float
    no_progress_polls: int = 0
    resubmissions: int = 0
    # False once the current execution_id has been stopped and no replacement is live yet.
    live: bool = True
    retired_execution_ids: List[str] = field(default_factory=list)

    @property
    def execution_ids(self) -> List[str]:
        """Every execution id this run has owned, oldest first."""
        return [*self.retired_execution_ids, self.execution_id]

    def replace_execution(self, execution_id: str) -> None:
        """Retire the live execution id and make ``execution_id`` live."""
        self.retired_execution_ids.append(self.execution_id)
        self.execution_id = execution_id
        self.live = True
        self.no_progress_polls = 0
        self.resubmissions += 1


class CompletionPoller:
    """Poll an execution until it terminates, recovering stuck executions."""

    def __init__(self, executor: AsyncQueryExecutor, retry_policy: RetryPolicy) -> None:
        self._executor = executor
        self._retry_policy = retry_policy

    def new_run_state(self, request: QueryRequest, execution_id: str) -> RunState:
        return RunState(
            request=request,
            execution_id=execution_id,
            poll_interval_seconds=self._retry_policy.poll_interval_seconds,
        )

    async def poll(self, run_state: RunState) -> ExecutionStatus:
        """Return the SUCCEEDED status or raise on any other outcome."""
        policy = self._retry_policy
        while True:
            try:
                status = await self._executor.get_status(run_state.execution_id)
            except Exception as exc:
                classification = classify_exception(exc)
                if not classification.is_retryable:
                    raise
                run_state.poll_interval_seconds = policy.transient_retry_delay_seconds
                logger.warning(
                    "Transient error %s polling Athena query %s; retrying in %.1fs.",
                    classification.error_code,
                    run_state.execution_id,
                    run_state.poll_interval_seconds,
                )
                await asyncio.sleep(run_state.poll_interval_seconds)
                continue

            run_state.poll_interval_seconds = policy.poll_interval_seconds

            if status.state == QueryStatus.SUCCEEDED:
                logger.info("Athena query %s succeeded.", status.execution_id)
                return status
            if status.state == QueryStatus.FAILED:
                raise EngineExecutionFailedError(
                    status.state_change_reason, execution_id=status.execution_id
                )
            if status.state == QueryStatus.CANCELLED:
                raise QueryCancelledError(
                    status.state_change_reason, execution_id=status.execution_id
                )

            run_state.no_progress_polls += 1
            logger.debug(
                "Athena query %s still running (poll %s without progress).",
                run_state.execution_id,
                run_state.no_progress_polls,
            )
            if run_state.no_progress_polls > policy.no_progress_threshold:
                if run_state.resubmissions >= policy.max_resubmissions:
                    await self._stop_quietly(run_state.execution_id)
                    run_state.live = False
                    logger.error(
                        "athena_stuck_execution_exhausted",
                        extra={
                            "event": "athena_stuck_execution_exhausted",
                            "execution_ids": run_state.execution_ids,
                            "resubmissions": run_state.resubmissions,
                        },
                    )
                    raise StuckExecutionExhaustedError(
                        execution_ids=run_state.execution_ids,
                        max_resubmissions=policy.max_resubmissions,
                        no_progress_threshold=policy.no_progress_threshold,
                    )
                await self._resubmit(run_state)

            await asyncio.sleep(run_state.poll_interval_seconds)

    async def _resubmit(self, run_state: RunState) -> None:
        stuck_id = run_state.execution_id
        await self._stop_quietly(stuck_id)
        run_state.live = False
        new_id = await self._executor.submit(run_state.request)
        run_state.replace_execution(new_id)
        logger.warning(
            "Athena query %s made no progress; resubmitted as %s (resubmission %s of %s).",
            stuck_id,
            new_id,
            run_state.resubmissions,
            self._retry_policy.max_resubmissions,
        )

    async def _stop_quietly(self, execution_id: str) -> None:
        try:
            await self._executor.cancel(execution_id)
        except Exception as exc:
            logger.warning("Stopping Athena query %s failed: %s", execution_id, exc)
