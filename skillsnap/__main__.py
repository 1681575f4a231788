import logging

from skillsnap.config import get_settings
from skillsnap.server import initialize

logger = logging.getLogger(__name__)


def main() -> None:
    """Start the cache admin server on the configured transport."""
    app = initialize()
    settings = get_settings()

    if settings.mcp_transport == "streamable-http":
        logger.info(
            "Serving over streamable-http on %s:%d", settings.mcp_host, settings.mcp_port
        )
        app.run(
            transport="streamable-http",
            host=settings.mcp_host,
            port=settings.mcp_port,
        )
    else:
        app.run()


if __name__ == "__main__":  # pragma: no cover
    main()
