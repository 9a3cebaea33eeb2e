"""
Redis Caching Utility for MedStock API
Short-lived caching for analytics and dashboard aggregates.

Every inventory write calls `AnalyticsCache.invalidate_all()`, so cached
aggregates never outlive the data they were computed from by more than
their TTL even if an invalidation is missed.
"""

import redis
import json
import os
from typing import Optional, Any, Callable, TypeVar
import logging

logger = logging.getLogger(__name__)

T = TypeVar('T')


def _cache_enabled() -> bool:
    return os.getenv("CACHE_ENABLED", "true").lower() == "true"


# Cache TTL settings (in seconds)
class CacheTTL:
    DASHBOARD_STATS = 60
    ANALYTICS = 300  # 5 minutes
    CATEGORIES = 3600  # 1 hour (rarely changes)


# Cache key prefixes
class CacheKeys:
    PREFIX = "analytics:"
    DASHBOARD_STATS = "analytics:dashboard:{day}"
    STOCK_TRENDS = "analytics:stock-trends:{date_from}:{date_to}"
    CATEGORY_DISTRIBUTION = "analytics:categories"
    MOVING_ITEMS = "analytics:moving-items:{date_from}:{date_to}"
    EXPIRY_LOSS = "analytics:expiry-loss:{day}"
    SUPPLIER_PERFORMANCE = "analytics:suppliers"
    REVENUE = "analytics:revenue:{date_from}:{date_to}"


class RedisCache:
    """Redis cache manager. Every operation degrades to a miss when Redis is down."""

    _instance: Optional['RedisCache'] = None
    _redis_client: Optional[redis.Redis] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        if self._redis_client is None and _cache_enabled():
            try:
                client = redis.from_url(
                    os.getenv("REDIS_URL", "redis://localhost:6379/0"),
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                    retry_on_timeout=True
                )
                client.ping()
                self._redis_client = client
                logger.info("Redis cache connected successfully")
            except redis.RedisError as e:
                logger.warning(f"Redis connection failed: {e}. Caching disabled.")
                self._redis_client = None

    @property
    def is_available(self) -> bool:
        if not _cache_enabled() or self._redis_client is None:
            return False
        try:
            return bool(self._redis_client.ping())
        except redis.RedisError:
            return False

    def get(self, key: str) -> Optional[Any]:
        if not self.is_available:
            return None
        try:
            value = self._redis_client.get(key)
            return json.loads(value) if value else None
        except (redis.RedisError, ValueError) as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

    def set(self, key: str, value: Any, ttl: int = 300) -> bool:
        if not self.is_available:
            return False
        try:
            self._redis_client.setex(key, ttl, json.dumps(value, default=str))
            return True
        except (redis.RedisError, TypeError) as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

    def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern"""
        if not self.is_available:
            return 0
        try:
            keys = list(self._redis_client.scan_iter(match=pattern))
            return self._redis_client.delete(*keys) if keys else 0
        except redis.RedisError as e:
            logger.error(f"Cache delete pattern error for {pattern}: {e}")
            return 0


# Singleton instance
cache = RedisCache()


class AnalyticsCache:
    """Analytics-specific caching operations"""

    @staticmethod
    def get_or_compute(key: str, ttl: int, compute: Callable[[], T]) -> T:
        cached_value = cache.get(key)
        if cached_value is not None:
            return cached_value

        result = compute()
        cache.set(key, result, ttl)
        return result

    @staticmethod
    def invalidate_all() -> int:
        """Drop every cached aggregate after an inventory write"""
        removed = cache.delete_pattern(f"{CacheKeys.PREFIX}*")
        if removed:
            logger.debug(f"Invalidated {removed} analytics cache entries")
        return removed
