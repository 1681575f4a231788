import pytest

from skillsnap.cache.store import CacheStore
from skillsnap.config import reset_settings
from skillsnap.metrics.aggregator import MetricsAggregator
from tests.factories import FakeClock, RecordingSleep


@pytest.fixture(autouse=True)
def _isolate_settings(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep every test on default settings and a throwaway data dir."""
    monkeypatch.setenv("DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("MCP_AUTH_TOKEN", raising=False)
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def metrics(clock: FakeClock) -> MetricsAggregator:
    return MetricsAggregator(clock=clock)


@pytest.fixture
def store(metrics: MetricsAggregator, clock: FakeClock, sleep: RecordingSleep) -> CacheStore:
    """CacheStore on a fake clock with a non-waiting retry sleep."""
    return CacheStore(metrics=metrics, clock=clock, sleep=sleep)
