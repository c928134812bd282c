"""
Query cache with prefix invalidation.

Keys are tuples whose first element is the resource or view name, e.g.
("bank_accounts", family_id). Invalidating ("bank_accounts",) drops every
entry for that resource regardless of the remaining key parts.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

CacheKey = tuple[Any, ...]


class QueryCache:
    """In-memory cache of query results with a staleness window."""

    def __init__(self, stale_seconds: float = 300.0):
        self._stale_seconds = stale_seconds
        self._entries: dict[CacheKey, tuple[Any, datetime]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return self._is_fresh(key)

    def _is_fresh(self, key: CacheKey) -> bool:
        entry = self._entries.get(key)
        if entry is None:
            return False
        age = (datetime.now(timezone.utc) - entry[1]).total_seconds()
        return age < self._stale_seconds

    def get(self, key: CacheKey) -> Optional[Any]:
        """Return the cached value if it is still fresh."""
        if not self._is_fresh(key):
            return None
        return self._entries[key][0]

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = (value, datetime.now(timezone.utc))

    async def get_or_fetch(self, key: CacheKey, fetch: Callable[[], Awaitable[T]]) -> T:
        """Return the fresh cached value, or fetch, store and return a new one."""
        if self._is_fresh(key):
            return self._entries[key][0]
        value = await fetch()
        self.set(key, value)
        return value

    def invalidate(self, *prefix: Any) -> int:
        """
        Drop every entry whose key starts with prefix.

        Returns:
            Number of entries removed
        """
        size = len(prefix)
        stale = [key for key in self._entries if key[:size] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Invalidated {len(stale)} cache entries for {prefix}")
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
