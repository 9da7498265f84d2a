"""
Services module for the Form Scoring & Access Engine.
"""

from formengine.services.cache import get_cache, reset_cache
from formengine.services.redis_cache import RedisCache
from formengine.services.snowflake import get_snowflake_connection

__all__ = [
    "get_cache",
    "reset_cache",
    "RedisCache",
    "get_snowflake_connection",
]
