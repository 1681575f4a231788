"""Read-through in-memory cache with sliding expiry, circuit breaking and metrics."""

import asyncio
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from skillsnap.cache.breaker import CircuitBreaker, CircuitStatus
from skillsnap.cache.keys import DEFAULT_TTL, SLIDING_WINDOW
from skillsnap.cache.retry import (
    DEFAULT_BASE_DELAY,
    DEFAULT_MAX_ATTEMPTS,
    SleepFn,
    fetch_retrying,
)

if TYPE_CHECKING:
    from skillsnap.metrics.aggregator import MetricsAggregator

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ENTRIES = 1024
DEFAULT_COMPACTION_PERCENTAGE = 0.20


@dataclass
class CacheEntry:
    """A cached value and its expiry bookkeeping (monotonic seconds)."""

    value: Any
    expires_at: float
    sliding: float | None
    created_at: float
    last_accessed: float

    def is_expired(self, now: float) -> bool:
        if now >= self.expires_at:
            return True
        return self.sliding is not None and now - self.last_accessed >= self.sliding

    def touch(self, now: float) -> None:
        """Renew the entry after a read within its sliding window."""
        self.last_accessed = now
        if self.sliding is not None:
            self.expires_at = max(self.expires_at, now + self.sliding)


class MemoryBackend:
    """Bounded key/entry map kept in least-recently-used order.

    When a new key would exceed *max_entries*, expired entries are purged
    first, then the least recently used ``max_entries * compaction_percentage``
    entries are evicted.

    Args:
        max_entries: Maximum number of entries.
        compaction_percentage: Fraction of entries evicted when full.
    """

    def __init__(
        self,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        compaction_percentage: float = DEFAULT_COMPACTION_PERCENTAGE,
    ) -> None:
        self.max_entries = max_entries
        self.compaction_percentage = compaction_percentage
        self._store: OrderedDict[str, CacheEntry] = OrderedDict()

    def get(self, key: str) -> CacheEntry | None:
        entry = self._store.get(key)
        if entry is not None:
            try:
                self._store.move_to_end(key)
            except KeyError:
                # Removed by a writer between the lookup and the reorder
                pass
        return entry

    def put(self, key: str, entry: CacheEntry, now: float) -> None:
        if key in self._store:
            self._store[key] = entry
            self._store.move_to_end(key)
            return

        if len(self._store) >= self.max_entries:
            self.purge_expired(now)
        if len(self._store) >= self.max_entries:
            self._compact()

        self._store[key] = entry

    def delete(self, key: str) -> bool:
        """Remove *key*. Returns True if the key existed."""
        return self._store.pop(key, None) is not None

    def keys_with_prefix(self, prefix: str) -> list[str]:
        return [k for k in list(self._store) if k.startswith(prefix)]

    def purge_expired(self, now: float) -> int:
        expired = [k for k, e in list(self._store.items()) if e.is_expired(now)]
        for key in expired:
            del self._store[key]
        return len(expired)

    def clear(self) -> int:
        count = len(self._store)
        self._store.clear()
        return count

    def _compact(self) -> None:
        count = max(1, int(self.max_entries * self.compaction_percentage))
        for _ in range(min(count, len(self._store))):
            key, _entry = self._store.popitem(last=False)
            logger.debug("Cache entry evicted (capacity): %s", key)

    def __contains__(self, key: str) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)


class CacheStore:
    """Cache-aside store in front of an upstream data source.

    Reads never raise because of the cache itself: backend errors are
    logged, counted by the circuit breaker, and turned into misses or
    skipped writes. While the breaker is open the cache is bypassed and
    ``get_or_set`` calls the fetch function directly.

    Structural changes to the backend (insert, remove, prefix removal,
    clear) are serialised by one lock; the breaker keeps its own. Neither
    is held across a fetch or a retry sleep.

    Args:
        backend: Underlying entry map; a fresh ``MemoryBackend`` by default.
        metrics: Optional aggregator for hit/miss timings and breaker events.
        default_ttl: Absolute lifetime in seconds when ``set`` gets no ttl.
        sliding: Sliding-renewal window in seconds.
        failure_threshold: Consecutive backend failures that open the breaker.
        cooldown: Seconds after the last failure before the breaker closes.
        max_attempts: Fetch attempts made by ``get_or_set`` on a miss.
        base_delay: First backoff delay in seconds; doubles per retry.
        clock: Monotonic clock, injectable for tests.
        sleep: Async sleep used between fetch attempts.
    """

    def __init__(
        self,
        backend: MemoryBackend | None = None,
        metrics: "MetricsAggregator | None" = None,
        default_ttl: float = DEFAULT_TTL,
        sliding: float | None = SLIDING_WINDOW,
        failure_threshold: int = 5,
        cooldown: float = 60.0,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay: float = DEFAULT_BASE_DELAY,
        clock: Callable[[], float] = time.monotonic,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self._backend = backend if backend is not None else MemoryBackend()
        self._metrics = metrics
        self.default_ttl = default_ttl
        self.sliding = sliding
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self._clock = clock
        self._sleep = sleep
        self._key_lock = threading.Lock()
        self.breaker = CircuitBreaker(
            "cache",
            fail_max=failure_threshold,
            reset_timeout=cooldown,
            metrics=metrics,
            clock=clock,
        )

    # ── Basic operations ─────────────────────────────────────────────────

    def get(self, key: str) -> Any | None:
        """Return the live value for *key*, or None on a miss or open circuit."""
        if self.breaker.is_open:
            logger.debug("Circuit open, bypassing cache read for %s", key)
            return None

        started = time.perf_counter()
        try:
            entry = self._backend.get(key)
            now = self._clock()
            if entry is not None and entry.is_expired(now):
                with self._key_lock:
                    if self._backend.get(key) is entry:
                        self._backend.delete(key)
                logger.debug("Cache entry expired: %s", key)
                entry = None
            if entry is not None:
                entry.touch(now)
        except Exception as exc:
            logger.exception("Error reading cache key %s", key)
            self.breaker.record_failure(f"get {key}: {exc}")
            return None

        elapsed = time.perf_counter() - started
        if entry is None:
            logger.debug("Cache miss for key: %s", key)
            if self._metrics is not None:
                self._metrics.track_cache_miss(key, elapsed)
            return None

        logger.debug("Cache hit for key: %s", key)
        if self._metrics is not None:
            self._metrics.track_cache_hit(key, elapsed)
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """Store *value* under *key* for *ttl* seconds (default_ttl if omitted)."""
        if value is None:
            logger.debug("Refusing to cache None for key: %s", key)
            return
        if self.breaker.is_open:
            logger.debug("Circuit open, skipping cache write for %s", key)
            return

        lifetime = self.default_ttl if ttl is None else ttl
        try:
            with self._key_lock:
                now = self._clock()
                entry = CacheEntry(
                    value=value,
                    expires_at=now + lifetime,
                    sliding=self.sliding,
                    created_at=now,
                    last_accessed=now,
                )
                self._backend.put(key, entry, now)
        except Exception as exc:
            logger.exception("Error setting cache key %s", key)
            self.breaker.record_failure(f"set {key}: {exc}")
            return

        self.breaker.record_success()
        logger.debug("Cache set for key: %s, ttl: %.3fs", key, lifetime)

    def remove(self, key: str) -> None:
        try:
            with self._key_lock:
                self._backend.delete(key)
        except Exception as exc:
            logger.exception("Error removing cache key %s", key)
            self.breaker.record_failure(f"remove {key}: {exc}")
            return
        logger.debug("Cache removed for key: %s", key)

    def remove_by_prefix(self, prefix: str) -> None:
        try:
            with self._key_lock:
                keys = self._backend.keys_with_prefix(prefix)
                for key in keys:
                    self._backend.delete(key)
        except Exception as exc:
            logger.exception("Error removing cache keys with prefix %s", prefix)
            self.breaker.record_failure(f"remove prefix {prefix}: {exc}")
            return
        logger.debug("Removed %d cache items with prefix: %s", len(keys), prefix)

    def clear(self) -> None:
        try:
            with self._key_lock:
                count = self._backend.clear()
        except Exception as exc:
            logger.exception("Error clearing cache")
            self.breaker.record_failure(f"clear: {exc}")
            return
        logger.info("Cache cleared - removed %d items", count)

    @property
    def size(self) -> int:
        """Current number of entries, including expired ones not yet purged."""
        return len(self._backend)

    # ── Cache-aside ──────────────────────────────────────────────────────

    async def get_or_set(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        ttl: float | None = None,
    ) -> T:
        """Return the cached value for *key*, fetching and caching it on a miss.

        The fetch is retried with exponential backoff; if every attempt
        fails the last exception propagates and nothing is cached. With the
        circuit open, *fetch* is awaited once and its result returned as-is.
        """
        if self.breaker.is_open:
            logger.debug("Circuit open, fetching %s directly", key)
            return await fetch()

        cached = self.get(key)
        if cached is not None:
            return cached

        async for attempt in fetch_retrying(
            self.max_attempts, self.base_delay, self._sleep
        ):
            with attempt:
                value = await fetch()

        self.set(key, value, ttl)
        return value

    # ── Circuit breaker ──────────────────────────────────────────────────

    def is_circuit_open(self) -> bool:
        return self.breaker.is_open

    def reset_circuit(self) -> None:
        self.breaker.reset()

    def circuit_status(self) -> CircuitStatus:
        return self.breaker.status()
