from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables and .env file.

    Cache lifetimes and windows are in seconds. The defaults match the
    production tuning: 15-minute entries renewed in 5-minute sliding
    windows, 1024 entries compacted by 20 %, a breaker that opens after 5
    consecutive store failures and cools down for a minute, and three fetch
    attempts starting at 100 ms of backoff.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cache store
    cache_default_ttl_seconds: float = Field(default=15 * 60.0, gt=0)
    cache_sliding_seconds: float = Field(default=5 * 60.0, gt=0)
    cache_max_entries: int = Field(default=1024, ge=1)
    cache_compaction_percentage: float = Field(default=0.20, gt=0, le=1)

    # Circuit breaker
    circuit_failure_threshold: int = Field(default=5, ge=1)
    circuit_cooldown_seconds: float = Field(default=60.0, ge=0)

    # Retry on cache-miss fetches
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_base_delay_seconds: float = Field(default=0.1, ge=0)

    # Metrics
    metrics_max_events: int = Field(default=100, ge=1)

    # Remote hosting: transport, bind address, and auth
    mcp_transport: str = "stdio"
    mcp_host: str = "0.0.0.0"
    mcp_port: int = 8000
    mcp_auth_token: str | None = None

    # Paths & logging
    data_dir: Path = Path(__file__).resolve().parent.parent / "data"
    log_level: str = "INFO"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the cached Settings singleton. Created on first call."""
    global _settings  # noqa: PLW0603
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Clear the cached settings. Used in tests."""
    global _settings  # noqa: PLW0603
    _settings = None
