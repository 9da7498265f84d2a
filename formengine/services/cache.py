"""
Cache Service Singleton - Form Scoring & Access Engine
formengine/services/cache.py

Provides a singleton Redis cache instance and the keys the synchronizer
persists its snapshot under. Gracefully handles Redis unavailability.
"""
from typing import Optional, Protocol

import redis

from formengine.config import settings
from formengine.services.redis_cache import RedisCache

# Snapshot keys (no TTL: the snapshot is the offline fallback)
FORMS_KEY = "forms"
RESPONSES_KEY = "formResponses"
ALLOWED_USERS_KEY = "allowedUsers"
ACCESS_TOKENS_KEY = "accessTokens"


class LocalCache(Protocol):
    """Durable string key/value store."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


def cache_key(name: str, prefix: Optional[str] = None) -> str:
    """Namespace a snapshot key, e.g. 'formengine:forms'."""
    return f"{prefix or settings.CACHE_KEY_PREFIX}:{name}"


# Singleton instance
_cache: Optional[RedisCache] = None


def get_cache() -> Optional[RedisCache]:
    """
    Get or create Redis cache instance.

    Returns:
        RedisCache instance if Redis is available, None otherwise.

    Note:
        Returns None if Redis is unavailable, allowing the engine to keep
        working on the in-memory store alone (graceful degradation).
    """
    global _cache
    if _cache is None:
        try:
            _cache = RedisCache()
            _cache.client.ping()  # Test connection
        except (redis.RedisError, ConnectionError):
            _cache = None
    return _cache


def reset_cache() -> None:
    """
    Reset the cache singleton.

    Useful for testing or when Redis connection needs to be re-established.
    """
    global _cache
    _cache = None
