import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, TypeVar

from athena_express.dal.errors import QueryTimeoutError

T = TypeVar("T")
logger = logging.getLogger(__name__)


async def run_with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout_seconds: Optional[float],
    cancel: Optional[Callable[[], Awaitable[None]]] = None,
    *,
    operation_name: str = "operation",
    execution_id: Optional[Callable[[], Optional[str]]] = None,
) -> T:
    """Run an awaitable operation with a timeout and optional cancellation."""
    if not timeout_seconds or timeout_seconds <= 0:
        return await operation()
    try:
        return await asyncio.wait_for(operation(), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        if cancel:
            try:
                result = cancel()
                if inspect.isawaitable(result):
                    await result
            except Exception as cancel_exc:
                logger.warning("Timeout cancellation failed: %s", cancel_exc)
        raise QueryTimeoutError(
            operation_name=operation_name,
            timeout_seconds=timeout_seconds,
            execution_id=execution_id() if execution_id else None,
        ) from exc
