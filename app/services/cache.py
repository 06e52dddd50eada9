"""
In-Memory TTL Cache

A small process-local key -> value store with per-entry expiry, used by the
trending ranking engine and the categories listing to avoid recomputing
aggregate queries on every request.

Features:
- Absolute expiry instant per entry (set replaces the entry wholesale)
- Lazy expiry: a get past the expiry instant is a miss and drops the entry
- Bounded size: when full, expired entries are swept first, then the least
  recently used entry is evicted
- Hit/miss statistics for the health endpoint

Lifecycle:
    One TTLCache is constructed when the application starts (see the
    lifespan in app.main) and handed to the services that need it. Nothing
    is persisted across restarts.

Concurrency:
    Only the map operations are guarded by a lock. Two callers missing the
    same key will both compute and both set it; the last set wins.

Cache Strategy:
- Trending rankings: 10 minute TTL, keyed by "trending:{days}:{limit}"
- Categories listing: 15 minute TTL, keyed by "categories"
"""

import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


# =============================================================================
# Cache Key Generation
# =============================================================================

def make_cache_key(prefix: str, *args, **kwargs) -> str:
    """
    Generate a consistent cache key from prefix and arguments.

    Examples:
        make_cache_key("trending", 7, 10) -> "trending:7:10"
        make_cache_key("categories") -> "categories"
        make_cache_key("feed", page=1, limit=20) -> "feed:limit=20:page=1"

    Args:
        prefix: Cache key prefix
        *args: Positional arguments to include in key
        **kwargs: Keyword arguments to include in key (sorted for consistency)

    Returns:
        Cache key string
    """
    parts = [prefix]

    for arg in args:
        if arg is not None:
            parts.append(str(arg))

    for key in sorted(kwargs.keys()):
        value = kwargs[key]
        if value is not None:
            parts.append(f"{key}={value}")

    return ":".join(parts)


# =============================================================================
# Cache
# =============================================================================

@dataclass
class CacheEntry:
    """A cached payload and the monotonic instant it stops being valid."""

    value: Any
    expires_at: float


class TTLCache:
    """
    Bounded in-memory cache with per-entry time-to-live.

    Args:
        max_entries: Maximum number of entries kept at once
        default_ttl: TTL in seconds used when set() is called without one
        timer: Monotonic clock in seconds (injectable for tests)
    """

    def __init__(
        self,
        max_entries: int = 1024,
        default_ttl: float = 300,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self._timer = timer
        self._entries: OrderedDict[str, CacheEntry] = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Whether key holds an unexpired entry. Doesn't touch stats or LRU order."""
        now = self._timer()
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and now < entry.expires_at

    def get(self, key: str) -> Any | None:
        """
        Get a value from the cache.

        Returns:
            The cached value, or None if absent or expired
        """
        now = self._timer()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                logger.debug(f"Cache MISS: {key}")
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                self._misses += 1
                logger.debug(f"Cache EXPIRED: {key}")
                return None
            self._entries.move_to_end(key)
            self._hits += 1
        logger.debug(f"Cache HIT: {key}")
        return entry.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        """
        Store a value, replacing any previous entry for the key.

        Args:
            key: Cache key
            value: Payload to cache (stored as-is, not copied)
            ttl: Time-to-live in seconds (uses default_ttl if not specified)
        """
        if ttl is None:
            ttl = self.default_ttl
        now = self._timer()
        with self._lock:
            if key in self._entries:
                del self._entries[key]
            elif len(self._entries) >= self.max_entries:
                self._make_room(now)
            self._entries[key] = CacheEntry(value=value, expires_at=now + ttl)
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")

    def delete(self, key: str) -> bool:
        """Delete a key. Returns True if it was present."""
        with self._lock:
            return self._entries.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        """
        Delete every key starting with prefix.

        Example:
            cache.delete_prefix("trending:")  # Drop all trending windows

        Returns:
            Number of keys deleted
        """
        with self._lock:
            keys = [key for key in self._entries if key.startswith(prefix)]
            for key in keys:
                del self._entries[key]
        if keys:
            logger.debug(f"Cache DELETE PREFIX: {prefix} ({len(keys)} keys)")
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def sweep(self) -> int:
        """
        Remove every expired entry.

        Returns:
            Number of entries removed
        """
        now = self._timer()
        with self._lock:
            return self._remove_expired(now)

    def stats(self) -> dict[str, Any]:
        """Cache statistics for monitoring."""
        with self._lock:
            return {
                "status": "in-memory",
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "keys": len(self._entries),
                "max_entries": self.max_entries,
            }

    # -------------------------------------------------------------------------
    # Internal helpers (call with the lock held)
    # -------------------------------------------------------------------------
    def _remove_expired(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if now >= entry.expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _make_room(self, now: float) -> None:
        if self._remove_expired(now):
            return
        key, _ = self._entries.popitem(last=False)
        self._evictions += 1
        logger.debug(f"Cache EVICT: {key}")
