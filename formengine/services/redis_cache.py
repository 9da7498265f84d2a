import logging
from typing import Optional

import redis

from formengine.config import settings
from formengine.core.exceptions import StorageQuotaExceededException

logger = logging.getLogger(__name__)


class RedisCache:
    def __init__(self, url: Optional[str] = None):
        self.client = redis.from_url(
            url or settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=5,
        )

    def get(self, key: str) -> Optional[str]:
        """Get cached string value."""
        return self.client.get(key)

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """
        Cache a string value, optionally with TTL.

        Raises:
            StorageQuotaExceededException: Redis is at maxmemory and refused the write.
        """
        try:
            if ttl_seconds:
                self.client.setex(key, ttl_seconds, value)
            else:
                self.client.set(key, value)
        except redis.ResponseError as e:
            if str(e).upper().startswith("OOM"):
                logger.warning(f"Redis out of memory writing {key} ({len(value)} bytes)")
                raise StorageQuotaExceededException(key, str(e))
            raise

    def delete(self, key: str) -> None:
        """Invalidate single cache entry."""
        self.client.delete(key)
