# siakad/core/cache.py
"""Redis caching implementation."""
import json
import logging
from typing import Any, Optional, Union
from datetime import timedelta
import redis.asyncio as redis
from ..core.config import settings

logger = logging.getLogger(__name__)

class CacheManager:
    def __init__(self, prefix: str = "siakad"):
        self.redis: Optional[redis.Redis] = None
        self.prefix = prefix

    async def initialize(self):
        """Initialize Redis connection."""
        if not self.redis:
            self.redis = redis.from_url(
                settings.redis_url,
                encoding="utf-8",
                decode_responses=True
            )

    async def close(self):
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    def make_key(self, *parts: Any) -> str:
        return ":".join([self.prefix, *[str(p) for p in parts]])

    async def get(self, key: str) -> Optional[Any]:
        """Get value from cache."""
        if not self.redis:
            await self.initialize()

        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
        except Exception as e:
            logger.warning(f"Cache get error for {key}: {e}")
        return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[Union[int, timedelta]] = None
    ) -> bool:
        """Set value in cache."""
        if not self.redis:
            await self.initialize()

        ttl = ttl or settings.cache_ttl
        if isinstance(ttl, timedelta):
            ttl = int(ttl.total_seconds())
        try:
            return bool(await self.redis.setex(key, ttl, json.dumps(value, default=str)))
        except Exception as e:
            logger.warning(f"Cache set error for {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        if not self.redis:
            await self.initialize()

        try:
            return bool(await self.redis.delete(key))
        except Exception as e:
            logger.warning(f"Cache delete error for {key}: {e}")
            return False

    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern (prefix added)."""
        if not self.redis:
            await self.initialize()

        deleted = 0
        try:
            async for key in self.redis.scan_iter(match=self.make_key(pattern)):
                deleted += await self.redis.delete(key)
        except Exception as e:
            logger.warning(f"Cache pattern delete error for {pattern}: {e}")
        return deleted

# Global cache instance
cache_manager = CacheManager()
