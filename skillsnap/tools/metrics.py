"""Read-only metrics tools plus the synthetic load and breaker demos."""

import asyncio
import json
import logging
import os
import platform
import random
import time
from datetime import UTC, datetime

from fastmcp import FastMCP

from skillsnap.cache.store import CacheStore
from skillsnap.metrics.aggregator import MetricsAggregator
from skillsnap.metrics.models import CircuitAction, MetricsSnapshot
from skillsnap.server import get_cache, get_metrics
from skillsnap.tools.error_messages import safe_tool_wrapper

logger = logging.getLogger(__name__)

MAX_SIMULATED_REQUESTS = 100
_SUMMARY_MIN_REQUESTS = 5


def build_metrics_document(metrics: MetricsAggregator, cache: CacheStore) -> dict:
    """Assemble the admin metrics document (camelCase keys, JSON-ready)."""
    snapshot = metrics.get_metrics()
    status = cache.circuit_status()
    doc = snapshot.model_dump(by_alias=True, mode="json", exclude={"generated_at"})
    doc["circuitBreakerStatus"] = {
        "isOpen": status.is_open,
        "consecutiveFailures": status.consecutive_failures,
        "lastFailureTime": (
            status.last_failure_time.isoformat() if status.last_failure_time else None
        ),
        "status": str(status.state),
    }
    doc["systemInfo"] = {
        "machineName": platform.node(),
        "processorCount": os.cpu_count(),
        "pythonVersion": platform.python_version(),
        "cacheEntries": cache.size,
    }
    doc["generatedAt"] = snapshot.generated_at.isoformat()
    return doc


def build_cache_summary(snapshot: MetricsSnapshot) -> dict:
    """Roll the per-category cache metrics up into overall figures."""
    cache_metrics = snapshot.cache_metrics
    total_requests = sum(m.total_requests for m in cache_metrics)
    total_hits = sum(m.hits for m in cache_metrics)
    hit_times = [m.average_hit_time for m in cache_metrics if m.hits > 0]
    miss_times = [m.average_miss_time for m in cache_metrics if m.misses > 0]
    best = sorted(
        (m for m in cache_metrics if m.total_requests >= _SUMMARY_MIN_REQUESTS),
        key=lambda m: m.hit_rate,
        reverse=True,
    )[:3]

    return {
        "totalRequests": total_requests,
        "totalHits": total_hits,
        "totalMisses": sum(m.misses for m in cache_metrics),
        "overallHitRate": total_hits / total_requests * 100 if total_requests else 0.0,
        "averageHitTime": sum(hit_times) / len(hit_times) if hit_times else 0.0,
        "averageMissTime": sum(miss_times) / len(miss_times) if miss_times else 0.0,
        "categoriesWithBestHitRate": [
            {"category": m.category, "hitRate": round(m.hit_rate, 2)} for m in best
        ],
    }


async def run_simulated_load(
    metrics: MetricsAggregator,
    requests: int = 10,
    rng: random.Random | None = None,
) -> int:
    """Drive *requests* concurrent synthetic operations through *metrics*.

    Each operation waits 10-100 ms, then records either a query timing or a
    project/skill cache hit or miss from a worker thread. *requests* is
    clamped to 1..100.

    Returns:
        Number of operations simulated.
    """
    requests = max(1, min(requests, MAX_SIMULATED_REQUESTS))
    rng = rng or random.Random()

    def record(operation: int, elapsed: float, roll: float, bucket: int, rows: int) -> None:
        if operation == 1:
            metrics.track_database_query("SimulatedProjectQuery", elapsed, rows)
        elif operation == 2:
            metrics.track_database_query("SimulatedSkillQuery", elapsed, rows)
        elif operation == 3:
            key = f"projects_cache_{bucket}"
            if roll > 0.3:
                metrics.track_cache_hit(key, elapsed)
            else:
                metrics.track_cache_miss(key, elapsed)
        else:
            key = f"skills_cache_{bucket}"
            if roll > 0.2:
                metrics.track_cache_hit(key, elapsed)
            else:
                metrics.track_cache_miss(key, elapsed)

    async def one(delay: float, operation: int, roll: float, bucket: int, rows: int) -> None:
        started = time.perf_counter()
        await asyncio.sleep(delay)
        elapsed = time.perf_counter() - started
        await asyncio.to_thread(record, operation, elapsed, roll, bucket, rows)

    await asyncio.gather(
        *(
            one(
                rng.randint(10, 100) / 1000,
                rng.randint(1, 4),
                rng.random(),
                rng.randint(1, 4),
                rng.randint(1, 50),
            )
            for _ in range(requests)
        )
    )
    return requests


def record_circuit_breaker_demo(metrics: MetricsAggregator) -> None:
    """Record the three events of a simulated breaker trip."""
    metrics.track_circuit_breaker_action(
        CircuitAction.FAILURE_DETECTED, "Simulated cache failure for testing"
    )
    metrics.track_circuit_breaker_action(
        CircuitAction.THRESHOLD_REACHED, "Multiple consecutive failures detected"
    )
    metrics.track_circuit_breaker_action(
        CircuitAction.CIRCUIT_OPENED, "Circuit breaker opened to prevent cascade failures"
    )


def register_metrics_tools(mcp: FastMCP) -> None:
    """Register metrics tools on the MCP server."""

    @mcp.tool
    async def get_metrics_report() -> str:
        """Get cache hit/miss rates, query timings, circuit-breaker events
        and status as a JSON document.

        Returns:
            JSON metrics report.
        """

        async def _report() -> str:
            doc = build_metrics_document(get_metrics(), get_cache())
            return json.dumps(doc, indent=2)

        return await safe_tool_wrapper(
            _report, context={"operation": "the metrics report"}
        )

    @mcp.tool
    async def reset_metrics() -> str:
        """Reset all performance counters and the circuit-breaker event log.

        Returns:
            Confirmation with the reset time.
        """

        async def _reset() -> str:
            get_metrics().reset_metrics()
            return f"Metrics reset successfully at {datetime.now(UTC).isoformat()}."

        return await safe_tool_wrapper(_reset, context={"operation": "metrics reset"})

    @mcp.tool
    async def cache_summary() -> str:
        """Summarise cache effectiveness across all categories.

        Returns:
            JSON with totals, overall hit rate and the best categories.
        """

        async def _summary() -> str:
            summary = build_cache_summary(get_metrics().get_metrics())
            return json.dumps(summary, indent=2)

        return await safe_tool_wrapper(
            _summary, context={"operation": "the cache summary"}
        )

    @mcp.tool
    async def simulate_load(requests: int = 10) -> str:
        """Generate synthetic cache and query metrics for demonstration.

        Args:
            requests: Number of simulated operations (at most 100).

        Returns:
            How many operations were simulated.
        """

        async def _simulate() -> str:
            count = await run_simulated_load(get_metrics(), requests)
            return f"Simulated {count} operations successfully."

        return await safe_tool_wrapper(
            _simulate, context={"operation": "load simulation"}
        )

    @mcp.tool
    async def test_circuit_breaker() -> str:
        """Record a simulated circuit-breaker trip in the event log.

        Returns:
            Confirmation message.
        """

        async def _demo() -> str:
            record_circuit_breaker_demo(get_metrics())
            return "Circuit breaker events simulated successfully."

        return await safe_tool_wrapper(
            _demo, context={"operation": "the circuit breaker test"}
        )
