"""Failure-counting circuit breaker guarding the cache store."""

import logging
import threading
import time
from collections.abc import Callable
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING, NamedTuple

from skillsnap.metrics.models import CircuitAction

if TYPE_CHECKING:
    from skillsnap.metrics.aggregator import MetricsAggregator

logger = logging.getLogger(__name__)


class CircuitState(StrEnum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"


class CircuitStatus(NamedTuple):
    consecutive_failures: int
    last_failure_time: datetime | None
    is_open: bool

    @property
    def state(self) -> CircuitState:
        return CircuitState.OPEN if self.is_open else CircuitState.CLOSED


class CircuitBreaker:
    """Opens after *fail_max* consecutive failures, closes lazily after a cooldown.

    There is no half-open probe: the first check made more than
    *reset_timeout* seconds after the last failure sees the breaker closed
    and clears the failure count. Successes reset the count only while the
    breaker is closed.

    Args:
        name: Human-readable name for logging.
        fail_max: Consecutive failures before opening.
        reset_timeout: Cooldown in seconds before the breaker closes again.
        metrics: Optional aggregator that receives failure-direction events.
        clock: Monotonic clock, injectable for tests.
    """

    def __init__(
        self,
        name: str,
        fail_max: int = 5,
        reset_timeout: float = 60.0,
        metrics: "MetricsAggregator | None" = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.name = name
        self.fail_max = fail_max
        self.reset_timeout = reset_timeout
        self._metrics = metrics
        self._clock = clock

        self._lock = threading.Lock()
        self._fail_count = 0
        self._last_failure_time: float = 0.0
        self._last_failure_at: datetime | None = None

    def _is_open_locked(self) -> bool:
        if self._fail_count < self.fail_max:
            return False
        if self._clock() - self._last_failure_time > self.reset_timeout:
            self._fail_count = 0
            logger.info("Circuit '%s' closed after cooldown", self.name)
            return False
        return True

    @property
    def is_open(self) -> bool:
        with self._lock:
            return self._is_open_locked()

    @property
    def state(self) -> CircuitState:
        return CircuitState.OPEN if self.is_open else CircuitState.CLOSED

    def record_success(self) -> None:
        with self._lock:
            if not self._is_open_locked():
                self._fail_count = 0

    def record_failure(self, reason: str = "") -> None:
        with self._lock:
            # Apply any pending cooldown close before counting this failure.
            was_open = self._is_open_locked()
            self._fail_count += 1
            self._last_failure_time = self._clock()
            self._last_failure_at = datetime.now(UTC)
            count = self._fail_count
        opened = not was_open and count >= self.fail_max

        if self._metrics is not None:
            self._metrics.track_circuit_breaker_action(
                CircuitAction.FAILURE_RECORDED,
                f"Failure {count}/{self.fail_max}: {reason}",
            )
            if opened:
                self._metrics.track_circuit_breaker_action(
                    CircuitAction.CIRCUIT_OPENED,
                    f"{count} consecutive failures",
                )
        if opened:
            logger.warning("Circuit '%s' opened after %d failures", self.name, count)

    def reset(self) -> None:
        """Close the breaker immediately and forget past failures."""
        with self._lock:
            self._fail_count = 0
            self._last_failure_time = 0.0
            self._last_failure_at = None
        logger.info("Circuit '%s' manually reset", self.name)

    def status(self) -> CircuitStatus:
        with self._lock:
            is_open = self._is_open_locked()
            return CircuitStatus(
                consecutive_failures=self._fail_count,
                last_failure_time=self._last_failure_at,
                is_open=is_open,
            )
