"""
Expiring Cache

LRU cache with per-entry TTL, owned by the application and injected into
collaborators that need to remember transient values:
- FedEx OAuth bearer tokens (TTL = expires_in minus a refresh buffer)
- The loaded rate configuration (TTL = RATE_CONFIG_TTL_SECONDS)

Usage:
    token_cache = ExpiringCache(max_size=8)
    token_cache.set("fedex:token", token, ttl_seconds=3540)
    token = token_cache.get("fedex:token")

    config = await config_cache.get_or_fetch("rate_config", load_config)
"""
import logging
import time
from collections import OrderedDict
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


class ExpiringCache:
    """
    LRU cache whose entries expire after their own TTL.

    Single-threaded async usage (standard in asyncio). The clock is injectable
    so expiry can be exercised deterministically in tests.

    Attributes:
        default_ttl_seconds: TTL applied when set() is called without one
        max_size: Maximum entries before LRU eviction
    """

    def __init__(
        self,
        default_ttl_seconds: float = 300,
        max_size: int = 128,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl_seconds = default_ttl_seconds
        self.max_size = max_size
        self._clock = clock
        self._cache: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None if absent or expired."""
        entry = self._cache.get(key)
        if entry is None:
            self._misses += 1
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._cache[key]
            self._misses += 1
            logger.debug(f"[CACHE] Expired: {key}")
            return None

        self._cache.move_to_end(key)
        self._hits += 1
        return value

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> None:
        """
        Store a value.

        A non-positive TTL stores nothing: the value would already be expired.
        """
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            self._cache.pop(key, None)
            return

        if key in self._cache:
            del self._cache[key]
        while len(self._cache) >= self.max_size:
            self._cache.popitem(last=False)
            self._evictions += 1
            logger.debug("[CACHE] Evicted oldest entry (capacity)")

        self._cache[key] = (self._clock() + ttl, value)

    async def get_or_fetch(
        self,
        key: str,
        fetch_func: Callable[[], Awaitable[Any]],
        ttl_seconds: Optional[float] = None,
    ) -> Any:
        """Get from cache or await fetch_func() and cache its result."""
        cached = self.get(key)
        if cached is not None:
            return cached

        value = await fetch_func()
        if value is not None:
            self.set(key, value, ttl_seconds)
        return value

    def invalidate(self, key: str) -> bool:
        """Drop a single entry. Returns True if it was present."""
        if key in self._cache:
            del self._cache[key]
            logger.debug(f"[CACHE] Invalidated: {key}")
            return True
        return False

    def clear(self) -> None:
        """Clear all cached entries."""
        count = len(self._cache)
        self._cache.clear()
        logger.info(f"[CACHE] Cleared {count} entries")

    def get_stats(self) -> Dict[str, Any]:
        total = self._hits + self._misses
        return {
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total, 4) if total > 0 else 0.0,
            "size": len(self._cache),
            "max_size": self.max_size,
            "evictions": self._evictions,
        }
