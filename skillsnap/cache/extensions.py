"""Shortcuts over ``CacheStore`` for the standard cache lifetimes."""

import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar

from skillsnap.cache.keys import CacheDurations
from skillsnap.cache.store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def get_or_set_standard(
    cache: CacheStore, key: str, fetch: Callable[[], Awaitable[T]]
) -> T:
    """Cache for 15 minutes."""
    return await cache.get_or_set(key, fetch, CacheDurations.STANDARD)


async def get_or_set_short(
    cache: CacheStore, key: str, fetch: Callable[[], Awaitable[T]]
) -> T:
    """Cache for 10 minutes."""
    return await cache.get_or_set(key, fetch, CacheDurations.SHORT)


async def get_or_set_long(
    cache: CacheStore, key: str, fetch: Callable[[], Awaitable[T]]
) -> T:
    """Cache for 1 hour."""
    return await cache.get_or_set(key, fetch, CacheDurations.LONG)


async def get_or_set_user_specific(
    cache: CacheStore, key: str, fetch: Callable[[], Awaitable[T]]
) -> T:
    """Cache per-user data for 10 minutes."""
    return await cache.get_or_set(key, fetch, CacheDurations.USER_SPECIFIC)


def invalidate_multiple(
    cache: CacheStore, keys: Iterable[str], context: str = "cache operation"
) -> int:
    """Remove every key in *keys*. Backend failures are absorbed by the store.

    Returns:
        Number of keys processed.
    """
    invalidated = 0
    for key in keys:
        cache.remove(key)
        invalidated += 1
    logger.debug("Invalidated %d cache entries for %s", invalidated, context)
    return invalidated
