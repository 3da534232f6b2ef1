# -*- coding: utf-8 -*-
"""Location: ./mcphub/cache/ttl_cache.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Generic In-Memory TTL Cache.

Thread-safe key/value store where every entry carries its own time-to-live.
The hub keeps its generated tool catalog here so that repeated ``search`` and
``exec`` calls within the TTL reuse one snapshot instead of re-listing every
upstream server.

Examples:
    >>> from mcphub.cache.ttl_cache import TTLCache
    >>> cache = TTLCache()
    >>> cache.get("tools") is None
    True
    >>> cache.set("tools", ["a", "b"], ttl_ms=60_000)
    >>> cache.get("tools")
    ['a', 'b']
    >>> cache.remove("tools")
    >>> cache.get("tools") is None
    True
"""

# Standard
import logging
import threading
import time
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class TTLCache:
    """Thread-safe in-memory cache with per-entry expiry.

    Attributes:
        _entries: Dict mapping cache keys to ``(value, expires_at)`` pairs
        _lock: Threading lock for thread-safe operations

    Examples:
        >>> cache = TTLCache()
        >>> cache.set("k", 1, ttl_ms=1000)
        >>> cache.has("k")
        True
        >>> cache.stats()["cached_keys"]
        ['k']
    """

    def __init__(self):
        """Initialize an empty cache."""
        self._entries: Dict[str, Tuple[Any, float]] = {}
        self._lock = threading.Lock()
        self._hit_count = 0
        self._miss_count = 0

    def get(self, key: str) -> Optional[Any]:
        """Get a cached value if it exists and hasn't expired.

        Expired entries are evicted on access.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not cached or expired.

        Examples:
            >>> TTLCache().get("missing") is None
            True
        """
        now = time.monotonic()
        with self._lock:
            entry = self._entries.get(key)
            if entry is not None:
                value, expires_at = entry
                if now < expires_at:
                    self._hit_count += 1
                    return value
                del self._entries[key]
            self._miss_count += 1
            return None

    def has(self, key: str) -> bool:
        """Return whether a live entry exists for ``key``.

        Args:
            key: Cache key

        Returns:
            True if the key is cached and not expired.
        """
        with self._lock:
            entry = self._entries.get(key)
            return entry is not None and time.monotonic() < entry[1]

    def set(self, key: str, value: Any, ttl_ms: int) -> None:
        """Store a value that expires ``ttl_ms`` milliseconds from now.

        Args:
            key: Cache key
            value: Value to cache
            ttl_ms: Lifetime in milliseconds

        Raises:
            ValueError: If ``ttl_ms`` is not positive.

        Examples:
            >>> cache = TTLCache()
            >>> cache.set("k", {"v": 1}, ttl_ms=500)
            >>> cache.get("k")
            {'v': 1}
            >>> cache.set("k", 1, ttl_ms=0)
            Traceback (most recent call last):
            ...
            ValueError: ttl_ms must be positive, got 0
        """
        if ttl_ms <= 0:
            raise ValueError(f"ttl_ms must be positive, got {ttl_ms}")
        with self._lock:
            self._entries[key] = (value, time.monotonic() + ttl_ms / 1000)

    def remove(self, key: str) -> None:
        """Remove ``key`` if present.

        Args:
            key: Cache key
        """
        with self._lock:
            self._entries.pop(key, None)
        logger.debug(f"TTL cache entry removed: {key}")

    def clear(self) -> None:
        """Remove every entry."""
        with self._lock:
            self._entries.clear()

    def stats(self) -> dict:
        """Get cache statistics.

        Returns:
            Dictionary with hit_count, miss_count, hit_rate and cached_keys.

        Examples:
            >>> cache = TTLCache()
            >>> cache._hit_count = 3
            >>> cache._miss_count = 1
            >>> cache.stats()["hit_rate"]
            0.75
        """
        total = self._hit_count + self._miss_count
        with self._lock:
            keys = list(self._entries.keys())
        return {
            "hit_count": self._hit_count,
            "miss_count": self._miss_count,
            "hit_rate": self._hit_count / total if total > 0 else 0.0,
            "cached_keys": keys,
        }
