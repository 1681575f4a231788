"""Operator-friendly error messages and safe tool wrapper."""

import logging

logger = logging.getLogger(__name__)


def get_user_message(error: Exception, context: dict | None = None) -> str:
    """Map an exception to an operator-facing message.

    Args:
        error: The exception to translate.
        context: Optional dict with extra info (e.g. {"operation": "clear cache"}).

    Returns:
        A human-readable error message.
    """
    operation = (context or {}).get("operation", "the request")

    if isinstance(error, ValueError):
        return f"Invalid input for {operation}: {error}"
    if isinstance(error, RuntimeError):
        return (
            f"The cache service is not ready to handle {operation}. "
            "Please try again once the server has finished starting."
        )
    return f"Failed to complete {operation}. Check the server log for details."


async def safe_tool_wrapper(
    func,  # type: ignore[no-untyped-def]
    *args: object,
    context: dict | None = None,
    **kwargs: object,
) -> str:
    """Call an async function, catching errors and returning friendly messages.

    Args:
        func: Async callable to invoke.
        *args: Positional arguments for *func*.
        context: Optional context dict for error messages.
        **kwargs: Keyword arguments for *func*.

    Returns:
        The function's return value on success, or a user-friendly error string.
    """
    try:
        return await func(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Tool error in %s", func.__name__)
        return get_user_message(exc, context)
