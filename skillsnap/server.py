"""FastMCP server owning the process-wide cache store and metrics aggregator.

An API layer serving portfolio reads builds its reader from the same shared
instances, e.g. ``PortfolioReader(source, get_cache(), get_metrics())``.
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from skillsnap.cache.store import CacheStore, MemoryBackend
from skillsnap.config import Settings
from skillsnap.metrics.aggregator import MetricsAggregator

logger = logging.getLogger(__name__)

_cache: CacheStore | None = None
_metrics: MetricsAggregator | None = None


def get_cache() -> CacheStore:
    """Get the process-wide CacheStore. Raises if not initialized."""
    if _cache is None:
        raise RuntimeError("Cache not initialized. Server lifespan has not started.")
    return _cache


def get_metrics() -> MetricsAggregator:
    """Get the process-wide MetricsAggregator. Raises if not initialized."""
    if _metrics is None:
        raise RuntimeError("Metrics not initialized. Server lifespan has not started.")
    return _metrics


def _reset_cache() -> None:
    """Clear the module-level cache reference. Used in tests."""
    global _cache  # noqa: PLW0603
    _cache = None


def _reset_metrics() -> None:
    """Clear the module-level metrics reference. Used in tests."""
    global _metrics  # noqa: PLW0603
    _metrics = None


def build_cache(settings: Settings) -> tuple[CacheStore, MetricsAggregator]:
    """Construct the shared cache store and its metrics aggregator from *settings*."""
    metrics = MetricsAggregator(max_events=settings.metrics_max_events)
    backend = MemoryBackend(
        max_entries=settings.cache_max_entries,
        compaction_percentage=settings.cache_compaction_percentage,
    )
    cache = CacheStore(
        backend=backend,
        metrics=metrics,
        default_ttl=settings.cache_default_ttl_seconds,
        sliding=settings.cache_sliding_seconds,
        failure_threshold=settings.circuit_failure_threshold,
        cooldown=settings.circuit_cooldown_seconds,
        max_attempts=settings.retry_max_attempts,
        base_delay=settings.retry_base_delay_seconds,
    )
    return cache, metrics


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[dict]:
    """Create the shared cache and metrics for the server lifecycle."""
    global _cache, _metrics  # noqa: PLW0603
    from skillsnap.config import get_settings

    _cache, _metrics = build_cache(get_settings())
    logger.info("Cache store initialized")

    try:
        yield {"cache": _cache, "metrics": _metrics}
    finally:
        _cache.clear()
        _cache = None
        _metrics = None
        logger.info("Cache store closed")


mcp = FastMCP("skillsnap-cache", lifespan=app_lifespan)


@mcp.custom_route("/health", methods=["GET"])
async def health_check(request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


def setup_logging(log_level: str, data_dir: Path) -> None:
    """Configure logging with file rotation and console output.

    Args:
        log_level: Logging level string (DEBUG, INFO, WARNING, ERROR).
        data_dir: Base data directory; logs go to data_dir/logs/server.log.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console handler: exact type check avoids matching subclasses (FileHandler, etc.)
    if not any(type(h) is logging.StreamHandler for h in root_logger.handlers):
        console = logging.StreamHandler()
        console.setLevel(level)
        console.setFormatter(formatter)
        root_logger.addHandler(console)

    log_dir = data_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "server.log"

    if not any(isinstance(h, RotatingFileHandler) for h in root_logger.handlers):
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=3,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def initialize() -> FastMCP:
    """Set up directories, logging, auth, and register tools. Returns the MCP server."""
    from skillsnap.config import get_settings

    settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    (settings.data_dir / "logs").mkdir(exist_ok=True)

    setup_logging(settings.log_level, settings.data_dir)

    if settings.mcp_auth_token:
        from skillsnap.auth import BearerTokenVerifier

        mcp.auth = BearerTokenVerifier(settings.mcp_auth_token)
        logger.info("Bearer token auth enabled")

    from skillsnap.tools.cache_admin import register_cache_tools
    from skillsnap.tools.metrics import register_metrics_tools

    register_metrics_tools(mcp)
    register_cache_tools(mcp)

    logger.info("SkillSnap cache server initialized")
    return mcp
