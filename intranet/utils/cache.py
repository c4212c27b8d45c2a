"""
Redis cache utility for per-user compliance status
"""
import redis
import json
import logging
from typing import Optional, Any
from uuid import UUID
from intranet.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """Redis-based cache; every operation degrades to a miss when Redis is unavailable"""

    COMPLIANCE_PREFIX = "compliance"

    def __init__(self, redis_url: Optional[str] = None):
        self.redis_client = None
        url = settings.REDIS_URL if redis_url is None else redis_url

        if not url:
            logger.info("REDIS_URL not set. Caching disabled.")
            return

        try:
            self.redis_client = redis.from_url(
                url,
                decode_responses=True,
                socket_connect_timeout=5
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    def compliance_key(self, user_id: UUID) -> str:
        """Cache key holding the pending-content status of one user"""
        return f"{self.COMPLIANCE_PREFIX}:{user_id}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.debug(f"Cache hit: {key}")
                return json.loads(value)
            logger.debug(f"Cache miss: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int = None) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds (default from settings)

        Returns:
            Success status
        """
        if not self.redis_client:
            return False

        try:
            ttl = ttl or settings.COMPLIANCE_CACHE_TTL
            self.redis_client.setex(key, ttl, json.dumps(value))
            logger.debug(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def delete(self, key: str) -> bool:
        """Delete key from cache"""
        if not self.redis_client:
            return False

        try:
            self.redis_client.delete(key)
            logger.info(f"Cache delete: {key}")
            return True
        except Exception as e:
            logger.error(f"Cache delete error: {str(e)}")
            return False

    def clear_compliance_cache(self) -> bool:
        """Drop every cached compliance status (content catalogue changed)"""
        if not self.redis_client:
            return False

        try:
            keys = list(self.redis_client.scan_iter(match=f"{self.COMPLIANCE_PREFIX}:*"))
            if keys:
                self.redis_client.delete(*keys)
                logger.info(f"Cleared {len(keys)} cached compliance statuses")
            return True
        except Exception as e:
            logger.error(f"Cache clear error: {str(e)}")
            return False


# Global instance
cache_service = CacheService()
