"""Thread-safe aggregation of cache, query and circuit-breaker metrics."""

import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from skillsnap.cache.keys import categorize
from skillsnap.metrics.models import (
    CacheMetric,
    CircuitBreakerEvent,
    MetricsSnapshot,
    QueryMetric,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_EVENTS = 100


@dataclass
class _CacheCounter:
    hits: int = 0
    misses: int = 0
    total_hit_time: float = 0.0
    total_miss_time: float = 0.0


@dataclass
class _QueryCounter:
    count: int = 0
    total_time: float = 0.0
    total_results: int = 0


class MetricsAggregator:
    """Collects hit/miss counts, query timings and circuit-breaker events.

    Counters are keyed by cache category or operation name and updated
    under a short counter lock so concurrent trackers never lose an
    increment. The event log has its own lock and keeps only the most
    recent *max_events* entries.

    Args:
        max_events: Size of the circuit-breaker event log.
        clock: Monotonic clock used for uptime.
    """

    def __init__(
        self,
        max_events: int = DEFAULT_MAX_EVENTS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_events = max_events
        self._clock = clock
        self._cache: dict[str, _CacheCounter] = {}
        self._queries: dict[str, _QueryCounter] = {}
        self._events: deque[CircuitBreakerEvent] = deque(maxlen=max_events)
        self._counter_lock = threading.Lock()
        self._event_lock = threading.Lock()
        self._started = clock()

    def track_cache_hit(self, key: str, duration: float) -> None:
        """Record a cache hit for *key* that took *duration* seconds."""
        category = categorize(key).value
        with self._counter_lock:
            counter = self._cache.setdefault(category, _CacheCounter())
            counter.hits += 1
            counter.total_hit_time += duration

    def track_cache_miss(self, key: str, duration: float) -> None:
        """Record a cache miss for *key* that took *duration* seconds."""
        category = categorize(key).value
        with self._counter_lock:
            counter = self._cache.setdefault(category, _CacheCounter())
            counter.misses += 1
            counter.total_miss_time += duration

    def track_database_query(
        self, operation: str, duration: float, result_count: int = 0
    ) -> None:
        with self._counter_lock:
            counter = self._queries.setdefault(operation, _QueryCounter())
            counter.count += 1
            counter.total_time += duration
            counter.total_results += result_count

    def track_circuit_breaker_action(self, action: str, reason: str = "") -> None:
        event = CircuitBreakerEvent(
            timestamp=datetime.now(UTC), action=str(action), reason=reason
        )
        with self._event_lock:
            # deque(maxlen=...) drops the oldest event once full
            self._events.append(event)

    def get_metrics(self) -> MetricsSnapshot:
        """Return a point-in-time copy of every counter and the event log."""
        with self._counter_lock:
            cache_metrics = [
                CacheMetric(
                    category=category,
                    hits=c.hits,
                    misses=c.misses,
                    total_hit_time=c.total_hit_time,
                    total_miss_time=c.total_miss_time,
                )
                for category, c in self._cache.items()
            ]
            query_metrics = [
                QueryMetric(
                    operation=operation,
                    count=q.count,
                    total_time=q.total_time,
                    total_results=q.total_results,
                )
                for operation, q in self._queries.items()
            ]
            uptime = timedelta(seconds=self._clock() - self._started)
        with self._event_lock:
            events = list(self._events)

        return MetricsSnapshot(
            uptime=uptime,
            cache_metrics=cache_metrics,
            query_metrics=query_metrics,
            circuit_breaker_events=events,
            generated_at=datetime.now(UTC),
        )

    def reset_metrics(self) -> None:
        """Clear all counters and events and restart the uptime clock."""
        with self._counter_lock:
            self._cache.clear()
            self._queries.clear()
            self._started = self._clock()
        with self._event_lock:
            self._events.clear()
        logger.info("Metrics reset")
