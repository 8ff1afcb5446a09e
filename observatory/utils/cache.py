"""
Caching utilities for the Weather Observatory Climate API.

Aggregation is deterministic, so a report computed for a given request can
be reused until it expires. Two interchangeable backends are provided:
- TTLCache: in-process dictionary with an injectable clock
- RedisCache: shared Redis instance with server-side expiry
"""

import json
import time
from typing import Any, Callable, Dict, Optional, Tuple

import redis
from redis.exceptions import RedisError

from observatory.config import settings
from observatory.utils.logging_config import get_logger

logger = get_logger(__name__)


class TTLCache:
    """
    In-memory cache with a fixed time-to-live.

    The clock is injected so expiry can be controlled in tests; entries are
    evicted lazily when read after expiry.
    """

    def __init__(self, ttl: float = 300, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found or expired
        """
        entry = self._entries.get(key)
        if entry is None:
            logger.debug(f"Cache MISS: {key}")
            return None

        expires_at, value = entry
        if self.clock() > expires_at:
            del self._entries[key]
            logger.debug(f"Cache EXPIRED: {key}")
            return None

        logger.debug(f"Cache HIT: {key}")
        return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> bool:
        """
        Store a value for ttl seconds (defaults to the cache-wide TTL).

        Expired entries are purged on every write, so keys that are never
        read again do not accumulate.
        """
        ttl = ttl if ttl is not None else self.ttl
        now = self.clock()
        self.purge_expired(now)
        self._entries[key] = (now + ttl, value)
        logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
        return True

    def purge_expired(self, now: Optional[float] = None) -> int:
        """Drop every expired entry; returns the number removed."""
        if now is None:
            now = self.clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if now > expires_at]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Cache PURGE: {len(expired)} expired entries")
        return len(expired)

    def delete(self, key: str) -> bool:
        """Delete key from cache."""
        self._entries.pop(key, None)
        logger.debug(f"Cache DELETE: {key}")
        return True

    def clear(self) -> int:
        """Remove every entry; returns the number removed."""
        removed = len(self._entries)
        self._entries.clear()
        return removed

    def __len__(self) -> int:
        return len(self._entries)

    def health_check(self) -> dict:
        return {
            "status": "healthy",
            "backend": "memory",
            "entries": len(self._entries),
            "ttl_seconds": self.ttl,
        }


class RedisCache:
    """
    Redis cache manager for aggregation results.

    Values are stored as JSON with server-side TTL. Connection problems
    disable the cache instead of failing requests.
    """

    def __init__(self, ttl: int = 300, client: Optional[redis.Redis] = None):
        """Initialize Redis connection (or use an injected client)."""
        self.ttl = ttl
        self.client: Optional[redis.Redis] = client
        self.enabled = False
        if client is not None:
            self.enabled = True
        else:
            self._connect()

    def _connect(self):
        """Establish connection to Redis."""
        try:
            self.client = redis.Redis(
                host=settings.REDIS_HOST,
                port=settings.REDIS_PORT,
                password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
                db=settings.REDIS_DB,
                decode_responses=True,
                socket_connect_timeout=5,
                socket_timeout=5
            )
            # Test connection
            self.client.ping()
            self.enabled = True
            logger.info(f"Redis cache connected: {settings.REDIS_HOST}:{settings.REDIS_PORT}")
        except (RedisError, ConnectionError) as e:
            logger.warning(f"Redis cache unavailable: {e}. Caching disabled.")
            self.enabled = False
            self.client = None

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value or None if not found or cache disabled
        """
        if not self.enabled or not self.client:
            return None

        try:
            value = self.client.get(key)
            if value:
                logger.debug(f"Cache HIT: {key}")
                return json.loads(value)
            logger.debug(f"Cache MISS: {key}")
            return None
        except (RedisError, json.JSONDecodeError) as e:
            logger.error(f"Cache GET error for key '{key}': {e}")
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache with TTL.

        Args:
            key: Cache key
            value: Value to cache (will be JSON serialized)
            ttl: Time to live in seconds (defaults to the cache-wide TTL)

        Returns:
            True if successful, False otherwise
        """
        if not self.enabled or not self.client:
            return False

        ttl = ttl if ttl is not None else self.ttl
        try:
            serialized = json.dumps(value, default=str)
            self.client.setex(key, ttl, serialized)
            logger.debug(f"Cache SET: {key} (TTL: {ttl}s)")
            return True
        except (RedisError, TypeError, ValueError) as e:
            logger.error(f"Cache SET error for key '{key}': {e}")
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not self.enabled or not self.client:
            return False

        try:
            self.client.delete(key)
            logger.debug(f"Cache DELETE: {key}")
            return True
        except RedisError as e:
            logger.error(f"Cache DELETE error for key '{key}': {e}")
            return False

    def clear(self, pattern: str = "observatory:*") -> int:
        """
        Clear all keys matching a pattern.

        Returns:
            Number of keys deleted
        """
        if not self.enabled or not self.client:
            return 0

        try:
            keys = self.client.keys(pattern)
            if keys:
                deleted = self.client.delete(*keys)
                logger.info(f"Cache CLEAR: {deleted} keys matching '{pattern}'")
                return deleted
            return 0
        except RedisError as e:
            logger.error(f"Cache CLEAR error for pattern '{pattern}': {e}")
            return 0

    def health_check(self) -> dict:
        """
        Check Redis health status.

        Returns:
            Dict with health status information
        """
        if not self.enabled or not self.client:
            return {
                "status": "disabled",
                "backend": "redis",
                "message": "Redis caching is not enabled"
            }

        try:
            self.client.ping()
            info = self.client.info()
            return {
                "status": "healthy",
                "backend": "redis",
                "connected_clients": info.get("connected_clients", 0),
                "used_memory_human": info.get("used_memory_human", "unknown"),
            }
        except RedisError as e:
            return {
                "status": "unhealthy",
                "backend": "redis",
                "error": str(e)
            }


def build_cache():
    """Create the cache backend selected by CACHE_BACKEND."""
    if settings.CACHE_BACKEND == "redis":
        return RedisCache(ttl=settings.CACHE_TTL_SECONDS)
    return TTLCache(ttl=settings.CACHE_TTL_SECONDS)


def make_cache_key(*parts: Any) -> str:
    """
    Create a cache key from parts.

    Example:
        >>> make_cache_key("observatory", "report", "st-01")
        "observatory:report:st-01"
    """
    return ":".join(str(part) for part in parts)


# Global cache instance
cache = build_cache()
