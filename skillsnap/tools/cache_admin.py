import json
import logging

from fastmcp import FastMCP

from skillsnap.cache import keys
from skillsnap.config import get_settings
from skillsnap.server import get_cache
from skillsnap.tools.error_messages import safe_tool_wrapper

logger = logging.getLogger(__name__)


def cache_status_document() -> dict:
    """Describe the cache configuration, known prefixes and breaker state."""
    settings = get_settings()
    cache = get_cache()
    status = cache.circuit_status()
    return {
        "message": "Cache service is running",
        "configuration": {
            "defaultExpirationSeconds": settings.cache_default_ttl_seconds,
            "slidingExpirationSeconds": settings.cache_sliding_seconds,
            "maxEntries": settings.cache_max_entries,
            "compactionPercentage": settings.cache_compaction_percentage,
            "circuitFailureThreshold": settings.circuit_failure_threshold,
            "circuitCooldownSeconds": settings.circuit_cooldown_seconds,
        },
        "entries": cache.size,
        "circuit": str(status.state),
        "availablePrefixes": list(keys.ALL_PREFIXES),
    }


def register_cache_tools(mcp: FastMCP) -> None:
    """Register cache management tools on the MCP server."""

    @mcp.tool
    async def clear_cache() -> str:
        """Remove every cached entry.

        Returns:
            Confirmation message.
        """

        async def _clear() -> str:
            get_cache().clear()
            logger.info("Cache cleared by operator")
            return "Cache cleared successfully."

        return await safe_tool_wrapper(_clear, context={"operation": "clear cache"})

    @mcp.tool
    async def clear_cache_prefix(prefix: str) -> str:
        """Remove cached entries whose key starts with a prefix, e.g.
        "project" or "portfolio_user".

        Args:
            prefix: Key prefix to invalidate.

        Returns:
            Confirmation message.
        """

        async def _clear_prefix() -> str:
            if not prefix.strip():
                raise ValueError("prefix must not be empty")
            get_cache().remove_by_prefix(prefix)
            logger.info("Cache cleared by prefix '%s' by operator", prefix)
            return f"Cache entries with prefix '{prefix}' cleared successfully."

        return await safe_tool_wrapper(
            _clear_prefix, context={"operation": "clear cache by prefix"}
        )

    @mcp.tool
    async def cache_status() -> str:
        """Show cache configuration, entry count and circuit-breaker state.

        Returns:
            JSON status document.
        """

        async def _status() -> str:
            return json.dumps(cache_status_document(), indent=2)

        return await safe_tool_wrapper(_status, context={"operation": "cache status"})

    @mcp.tool
    async def reset_circuit() -> str:
        """Close the cache circuit breaker immediately.

        Returns:
            Confirmation message.
        """

        async def _reset() -> str:
            get_cache().reset_circuit()
            return "Circuit breaker reset; caching re-enabled."

        return await safe_tool_wrapper(
            _reset, context={"operation": "circuit reset"}
        )
