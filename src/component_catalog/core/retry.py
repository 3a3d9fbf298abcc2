"""Bounded retry with capped exponential backoff."""

from typing import Awaitable, Callable, TypeVar

import httpx
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from .errors import CatalogError, ErrorKind
from .logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

MAX_RETRY_DELAY = 60.0


def is_retryable(exc: BaseException) -> bool:
    """Retry transport failures and retryable catalog errors only."""
    if isinstance(exc, CatalogError):
        return exc.retryable
    return isinstance(exc, httpx.TransportError)


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "retry_scheduled",
        attempt=state.attempt_number,
        delay=round(state.next_action.sleep, 3) if state.next_action else 0,
        error=str(exc),
    )


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = MAX_RETRY_DELAY,
) -> T:
    """
    Run an async operation, retrying retryable failures.

    The delay doubles per attempt starting at base_delay and never exceeds
    max_delay. Non-retryable errors propagate immediately.

    Args:
        operation: Zero-argument coroutine factory
        attempts: Total attempts, including the first
        base_delay: First backoff delay in seconds
        max_delay: Ceiling for a single delay in seconds

    Returns:
        The operation's result

    Raises:
        CatalogError: NETWORK_ERROR once every attempt has failed
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    retrying = AsyncRetrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=base_delay, max=min(max_delay, MAX_RETRY_DELAY)),
        retry=retry_if_exception(is_retryable),
        before_sleep=_log_retry,
    )
    try:
        return await retrying(operation)
    except RetryError as exc:
        last = exc.last_attempt.exception()
        logger.error("retry_exhausted", attempts=attempts, error=str(last))
        raise CatalogError(
            ErrorKind.NETWORK_ERROR,
            f"Operation failed after {attempts} attempts",
            details={"attempts": attempts, "lastError": str(last)},
        ) from last


__all__ = ["retry_async", "is_retryable", "MAX_RETRY_DELAY"]
