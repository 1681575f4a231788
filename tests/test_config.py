from pathlib import Path

import pytest
from pydantic import ValidationError

from skillsnap.config import Settings, get_settings, reset_settings


class TestSettings:
    """Test Settings field defaults and environment overrides."""

    def test_cache_defaults(self):
        s = Settings(_env_file=None)
        assert s.cache_default_ttl_seconds == 900
        assert s.cache_sliding_seconds == 300
        assert s.cache_max_entries == 1024
        assert s.cache_compaction_percentage == 0.2

    def test_breaker_and_retry_defaults(self):
        s = Settings(_env_file=None)
        assert s.circuit_failure_threshold == 5
        assert s.circuit_cooldown_seconds == 60
        assert s.retry_max_attempts == 3
        assert s.retry_base_delay_seconds == 0.1
        assert s.metrics_max_events == 100

    def test_overrides_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CIRCUIT_FAILURE_THRESHOLD", "3")
        monkeypatch.setenv("CACHE_DEFAULT_TTL_SECONDS", "30")
        s = Settings(_env_file=None)
        assert s.circuit_failure_threshold == 3
        assert s.cache_default_ttl_seconds == 30

    def test_rejects_non_positive_ttl(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("CACHE_DEFAULT_TTL_SECONDS", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_rejects_zero_attempts(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("RETRY_MAX_ATTEMPTS", "0")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_mcp_defaults(self):
        s = Settings(_env_file=None)
        assert s.mcp_transport == "stdio"
        assert s.mcp_port == 8000
        assert s.mcp_auth_token is None

    def test_data_dir_from_env(self, monkeypatch: pytest.MonkeyPatch, tmp_path):
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        s = Settings(_env_file=None)
        assert s.data_dir == Path(tmp_path)

    def test_log_level_default(self):
        assert Settings(_env_file=None).log_level == "INFO"


class TestGetSettings:
    def test_returns_singleton(self):
        assert get_settings() is get_settings()

    def test_reset_creates_new_instance(self):
        first = get_settings()
        reset_settings()
        assert get_settings() is not first
