"""Retry-with-exponential-backoff for upstream fetches."""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 0.1

SleepFn = Callable[[float], Awaitable[None]]


def log_retry_attempt(retry_state: RetryCallState) -> None:
    """Tenacity ``before_sleep`` callback that logs each retry."""
    attempt = retry_state.attempt_number
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Fetch attempt %d failed, retrying: %s", attempt, exc)


def fetch_retrying(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    sleep: SleepFn = asyncio.sleep,
) -> AsyncRetrying:
    """Build the retry controller used around a cache-miss fetch.

    Any exception is retried. The wait before attempt *n + 1* is
    ``base_delay * 2 ** (n - 1)`` (100 ms, 200 ms, ... by default) and the
    last exception is re-raised untouched once *max_attempts* is reached.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=base_delay, exp_base=2),
        sleep=sleep,
        before_sleep=log_retry_attempt,
        reraise=True,
    )
