"""
Redis Cache Tests - Form Scoring & Access Engine
tests/test_redis_cache.py

Tests for the Redis-backed local cache: reads, writes, quota errors and
graceful degradation when Redis is down.
"""
import pytest
import redis
from unittest.mock import patch, MagicMock

from formengine.core.exceptions import StorageQuotaExceededException
from formengine.services.cache import cache_key, get_cache, reset_cache
from formengine.services.redis_cache import RedisCache


class TestRedisCache:
    """Tests for the RedisCache class."""

    def test_redis_cache_init(self):
        """RedisCache connects through redis.from_url."""
        with patch('formengine.services.redis_cache.redis.from_url') as mock_from_url:
            cache = RedisCache("redis://cache:6379/1")
            mock_from_url.assert_called_once_with(
                "redis://cache:6379/1",
                decode_responses=True,
                socket_connect_timeout=5,
            )
            assert cache.client is mock_from_url.return_value

    def test_cache_set_and_get(self):
        with patch('formengine.services.redis_cache.redis.from_url') as mock_from_url:
            mock_client = MagicMock()
            mock_from_url.return_value = mock_client

            cache = RedisCache()
            cache.set("test:key", '{"a": 1}')
            mock_client.set.assert_called_once_with("test:key", '{"a": 1}')

            mock_client.get.return_value = '{"a": 1}'
            assert cache.get("test:key") == '{"a": 1}'

    def test_cache_set_with_ttl(self):
        with patch('formengine.services.redis_cache.redis.from_url') as mock_from_url:
            mock_client = MagicMock()
            mock_from_url.return_value = mock_client

            RedisCache().set("test:key", "v", ttl_seconds=60)
            mock_client.setex.assert_called_once_with("test:key", 60, "v")

    def test_cache_get_miss(self):
        with patch('formengine.services.redis_cache.redis.from_url') as mock_from_url:
            mock_client = MagicMock()
            mock_client.get.return_value = None
            mock_from_url.return_value = mock_client

            assert RedisCache().get("nonexistent:key") is None

    def test_cache_delete(self):
        with patch('formengine.services.redis_cache.redis.from_url') as mock_from_url:
            mock_client = MagicMock()
            mock_from_url.return_value = mock_client

            RedisCache().delete("test:key")
            mock_client.delete.assert_called_once_with("test:key")

    def test_out_of_memory_raises_quota_error(self):
        with patch('formengine.services.redis_cache.redis.from_url') as mock_from_url:
            mock_client = MagicMock()
            mock_client.set.side_effect = redis.ResponseError(
                "OOM command not allowed when used memory > 'maxmemory'."
            )
            mock_from_url.return_value = mock_client

            with pytest.raises(StorageQuotaExceededException) as exc:
                RedisCache().set("big:key", "x" * 100)
            assert exc.value.key == "big:key"

    def test_other_response_errors_propagate(self):
        with patch('formengine.services.redis_cache.redis.from_url') as mock_from_url:
            mock_client = MagicMock()
            mock_client.set.side_effect = redis.ResponseError("WRONGTYPE Operation")
            mock_from_url.return_value = mock_client

            with pytest.raises(redis.ResponseError):
                RedisCache().set("k", "v")


class TestCacheSingleton:
    """Tests for get_cache() graceful degradation."""

    def setup_method(self):
        reset_cache()

    def teardown_method(self):
        reset_cache()

    def test_get_cache_returns_none_when_redis_down(self):
        with patch('formengine.services.cache.RedisCache') as mock_cls:
            mock_cls.return_value.client.ping.side_effect = redis.ConnectionError("refused")
            assert get_cache() is None

    def test_get_cache_is_singleton(self):
        with patch('formengine.services.cache.RedisCache') as mock_cls:
            first = get_cache()
            second = get_cache()
            assert first is second
            mock_cls.assert_called_once()

    def test_reset_cache(self):
        with patch('formengine.services.cache.RedisCache') as mock_cls:
            get_cache()
            reset_cache()
            get_cache()
            assert mock_cls.call_count == 2

    def test_cache_key(self):
        assert cache_key("forms", "demo") == "demo:forms"
