"""Tests for skillsnap.tools.metrics: report builders and registered tools."""

import random
from unittest.mock import patch

import pytest
from fastmcp import Client, FastMCP

from skillsnap.cache.keys import CacheCategory
from skillsnap.metrics.models import CircuitAction
from skillsnap.tools.metrics import (
    MAX_SIMULATED_REQUESTS,
    build_cache_summary,
    build_metrics_document,
    record_circuit_breaker_demo,
    register_metrics_tools,
    run_simulated_load,
)
from tests.factories import FailingBackend


class TestBuildMetricsDocument:
    def test_document_shape(self, store, metrics):
        store.set("project:id:1", "p")
        store.get("project:id:1")
        metrics.track_database_query("GetProjects", 0.01, 3)
        doc = build_metrics_document(metrics, store)
        assert list(doc) == [
            "uptime",
            "cacheMetrics",
            "queryMetrics",
            "circuitBreakerEvents",
            "circuitBreakerStatus",
            "systemInfo",
            "generatedAt",
        ]
        assert doc["cacheMetrics"][0]["category"] == "Projects"
        assert doc["cacheMetrics"][0]["hitRate"] == pytest.approx(100.0)
        assert doc["queryMetrics"][0]["averageResults"] == pytest.approx(3.0)
        assert doc["circuitBreakerStatus"] == {
            "isOpen": False,
            "consecutiveFailures": 0,
            "lastFailureTime": None,
            "status": "CLOSED",
        }
        assert doc["systemInfo"]["cacheEntries"] == 1

    def test_open_circuit_status(self, metrics, clock):
        from skillsnap.cache.store import CacheStore

        store = CacheStore(backend=FailingBackend(), metrics=metrics, clock=clock)  # type: ignore[arg-type]
        for _ in range(5):
            store.set("k", "v")
        doc = build_metrics_document(metrics, store)
        status = doc["circuitBreakerStatus"]
        assert status["isOpen"] is True
        assert status["status"] == "OPEN"
        assert status["consecutiveFailures"] == 5
        assert status["lastFailureTime"] is not None
        assert doc["circuitBreakerEvents"][-1]["action"] == "CIRCUIT_OPENED"


class TestBuildCacheSummary:
    def test_totals_and_best_categories(self, metrics):
        for _ in range(9):
            metrics.track_cache_hit("skill:id:1", 0.001)
        metrics.track_cache_miss("skill:id:1", 0.002)
        for _ in range(3):
            metrics.track_cache_hit("project:id:1", 0.001)
        for _ in range(3):
            metrics.track_cache_miss("project:id:1", 0.002)
        metrics.track_cache_hit("user_role:portfolio_user:1", 0.001)

        summary = build_cache_summary(metrics.get_metrics())

        assert summary["totalRequests"] == 17
        assert summary["totalHits"] == 13
        assert summary["totalMisses"] == 4
        assert summary["overallHitRate"] == pytest.approx(13 / 17 * 100)
        assert summary["categoriesWithBestHitRate"] == [
            {"category": "Skills", "hitRate": 90.0},
            {"category": "Projects", "hitRate": 50.0},
        ]

    def test_empty(self, metrics):
        summary = build_cache_summary(metrics.get_metrics())
        assert summary["totalRequests"] == 0
        assert summary["overallHitRate"] == 0.0
        assert summary["averageHitTime"] == 0.0
        assert summary["categoriesWithBestHitRate"] == []


class TestSimulatedLoad:
    async def test_counts_every_operation(self, metrics):
        count = await run_simulated_load(metrics, 40, rng=random.Random(7))
        assert count == 40
        snapshot = metrics.get_metrics()
        tracked = sum(m.total_requests for m in snapshot.cache_metrics) + sum(
            q.count for q in snapshot.query_metrics
        )
        assert tracked == 40
        for metric in snapshot.cache_metrics:
            assert metric.category in (CacheCategory.PROJECTS, CacheCategory.SKILLS)

    async def test_request_count_is_capped(self, metrics):
        count = await run_simulated_load(metrics, 1000)
        assert count == MAX_SIMULATED_REQUESTS


class TestCircuitBreakerDemo:
    def test_records_three_events(self, metrics):
        record_circuit_breaker_demo(metrics)
        actions = [e.action for e in metrics.get_metrics().circuit_breaker_events]
        assert actions == [
            CircuitAction.FAILURE_DETECTED,
            CircuitAction.THRESHOLD_REACHED,
            CircuitAction.CIRCUIT_OPENED,
        ]


class TestRegisteredTools:
    def test_registration_succeeds(self):
        register_metrics_tools(FastMCP("test"))

    async def _call(self, store, metrics, tool: str, args: dict | None = None) -> str:
        test_mcp = FastMCP("test")
        register_metrics_tools(test_mcp)
        with (
            patch("skillsnap.tools.metrics.get_cache", return_value=store),
            patch("skillsnap.tools.metrics.get_metrics", return_value=metrics),
        ):
            async with Client(test_mcp) as client:
                result = await client.call_tool(tool, args or {})
        return str(result)

    async def test_get_metrics_report(self, store, metrics):
        metrics.track_database_query("GetSkills", 0.01, 2)
        text = await self._call(store, metrics, "get_metrics_report")
        assert "GetSkills" in text
        assert "circuitBreakerStatus" in text

    async def test_reset_metrics(self, store, metrics):
        metrics.track_database_query("GetSkills", 0.01, 2)
        text = await self._call(store, metrics, "reset_metrics")
        assert "Metrics reset successfully" in text
        assert metrics.get_metrics().query_metrics == []

    async def test_cache_summary(self, store, metrics):
        metrics.track_cache_hit("skill:id:1", 0.001)
        text = await self._call(store, metrics, "cache_summary")
        assert "overallHitRate" in text

    async def test_simulate_load(self, store, metrics):
        text = await self._call(store, metrics, "simulate_load", {"requests": 5})
        assert "Simulated 5 operations" in text

    async def test_test_circuit_breaker(self, store, metrics):
        text = await self._call(store, metrics, "test_circuit_breaker")
        assert "simulated successfully" in text
        assert len(metrics.get_metrics().circuit_breaker_events) == 3

    async def test_uninitialized_server_returns_friendly_error(self):
        test_mcp = FastMCP("test")
        register_metrics_tools(test_mcp)
        async with Client(test_mcp) as client:
            result = await client.call_tool("get_metrics_report", {})
        assert "not ready" in str(result)
