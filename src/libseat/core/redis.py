"""
Redis client used by the shared seat-list cache backend
"""
import redis.asyncio as redis
from libseat.core.config import settings
import json
from typing import Optional, Any
import logging

logger = logging.getLogger(__name__)


class RedisClient:
    """
    Async Redis client wrapper.

    Cache reads and writes degrade to misses when Redis is unreachable; the
    seat-list cache is never the source of truth.
    """

    def __init__(self, url: str = None):
        self.url = url or settings.REDIS_URL
        self.redis: Optional[redis.Redis] = None

    async def connect(self):
        """Connect to Redis"""
        try:
            self.redis = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
                max_connections=50,
            )
            await self.redis.ping()
            logger.info("✅ Redis connected successfully")
        except Exception as e:
            logger.error(f"❌ Redis connection failed: {e}")
            self.redis = None

    async def close(self):
        """Close Redis connection"""
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("🔴 Redis connection closed")

    async def get(self, key: str) -> Optional[Any]:
        """Get JSON value from cache"""
        if not self.redis:
            return None

        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.error(f"Redis GET error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """Set JSON value with a TTL in whole seconds"""
        if not self.redis:
            return False

        try:
            serialized = json.dumps(value, default=str)
            await self.redis.setex(key, max(1, int(ttl)), serialized)
            return True
        except Exception as e:
            logger.error(f"Redis SET error for key {key}: {e}")
            return False

    async def delete(self, *keys: str) -> bool:
        """Delete one or more keys"""
        if not self.redis:
            return False

        try:
            await self.redis.delete(*keys)
            return True
        except Exception as e:
            logger.error(f"Redis DELETE error: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete all keys matching pattern"""
        if not self.redis:
            return 0

        try:
            keys = []
            async for key in self.redis.scan_iter(match=pattern):
                keys.append(key)

            if keys:
                return await self.redis.delete(*keys)
            return 0
        except Exception as e:
            logger.error(f"Redis DELETE_PATTERN error: {e}")
            return 0
