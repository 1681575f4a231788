"""Immutable metrics snapshot models.

Field names are snake_case in Python and camelCase in JSON output
(``model_dump(by_alias=True, mode="json")``).
"""

from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, computed_field
from pydantic.alias_generators import to_camel


class CircuitAction(StrEnum):
    FAILURE_RECORDED = "FAILURE_RECORDED"
    CIRCUIT_OPENED = "CIRCUIT_OPENED"
    # Demo events recorded by the test_circuit_breaker admin tool
    FAILURE_DETECTED = "FAILURE_DETECTED"
    THRESHOLD_REACHED = "THRESHOLD_REACHED"


class _SnapshotModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class CacheMetric(_SnapshotModel):
    category: str
    hits: int = 0
    misses: int = 0
    total_hit_time: float = 0.0
    total_miss_time: float = 0.0

    @computed_field(alias="totalRequests")  # type: ignore[prop-decorator]
    @property
    def total_requests(self) -> int:
        return self.hits + self.misses

    @computed_field(alias="hitRate")  # type: ignore[prop-decorator]
    @property
    def hit_rate(self) -> float:
        """Percentage of lookups that were hits (0-100)."""
        if self.total_requests == 0:
            return 0.0
        return self.hits / self.total_requests * 100

    @computed_field(alias="averageHitTime")  # type: ignore[prop-decorator]
    @property
    def average_hit_time(self) -> float:
        """Mean hit latency in milliseconds."""
        if self.hits == 0:
            return 0.0
        return self.total_hit_time * 1000 / self.hits

    @computed_field(alias="averageMissTime")  # type: ignore[prop-decorator]
    @property
    def average_miss_time(self) -> float:
        """Mean miss latency in milliseconds."""
        if self.misses == 0:
            return 0.0
        return self.total_miss_time * 1000 / self.misses


class QueryMetric(_SnapshotModel):
    operation: str
    count: int = 0
    total_time: float = 0.0
    total_results: int = 0

    @computed_field(alias="averageTime")  # type: ignore[prop-decorator]
    @property
    def average_time(self) -> float:
        """Mean query latency in milliseconds."""
        if self.count == 0:
            return 0.0
        return self.total_time * 1000 / self.count

    @computed_field(alias="averageResults")  # type: ignore[prop-decorator]
    @property
    def average_results(self) -> float:
        if self.count == 0:
            return 0.0
        return self.total_results / self.count


class CircuitBreakerEvent(_SnapshotModel):
    timestamp: datetime
    action: str
    reason: str = ""


class MetricsSnapshot(_SnapshotModel):
    uptime: timedelta
    cache_metrics: list[CacheMetric] = []
    query_metrics: list[QueryMetric] = []
    circuit_breaker_events: list[CircuitBreakerEvent] = []
    generated_at: datetime

    def cache_metric(self, category: str) -> CacheMetric | None:
        """Return the metric for *category*, or ``None`` if it was never tracked."""
        for metric in self.cache_metrics:
            if metric.category == category:
                return metric
        return None

    def query_metric(self, operation: str) -> QueryMetric | None:
        for metric in self.query_metrics:
            if metric.operation == operation:
                return metric
        return None
