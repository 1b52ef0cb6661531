"""
Tests for the Redis response cache and bearer token verification.
"""
import json
from unittest.mock import Mock

import pytest
from fastapi import HTTPException
from jose import jwt
from redis.exceptions import RedisError

from config.settings import settings
from src.civicstack.api import cache
from src.civicstack.api.auth import decode_user_id, get_current_user_id, get_optional_user_id


class TestCacheResult:

    def test_calls_through_without_redis(self, monkeypatch):
        """Without Redis every call computes."""
        monkeypatch.setattr(cache, "get_redis_client", lambda: None)
        calls = []

        @cache.cache_result("test")
        def compute(x):
            calls.append(x)
            return {"value": x}

        assert compute(1) == {"value": 1}
        assert compute(1) == {"value": 1}
        assert calls == [1, 1]

    def test_returns_cached_value(self, monkeypatch):
        """A hit skips the function."""
        client = Mock()
        client.get.return_value = json.dumps({"value": "cached"})
        monkeypatch.setattr(cache, "get_redis_client", lambda: client)

        @cache.cache_result("test")
        def compute():
            raise AssertionError("must not run on a cache hit")

        assert compute() == {"value": "cached"}

    def test_stores_miss_with_ttl(self, monkeypatch):
        """A miss is stored with the TTL."""
        client = Mock()
        client.get.return_value = None
        monkeypatch.setattr(cache, "get_redis_client", lambda: client)

        @cache.cache_result("transparency:dashboard", ttl=60, key_args=lambda db: ())
        def compute(db):
            return {"total": 3}

        assert compute(object()) == {"total": 3}
        key, ttl, payload = client.setex.call_args[0]
        assert key == cache.make_cache_key("transparency:dashboard")
        assert ttl == 60
        assert json.loads(payload) == {"total": 3}

    def test_key_args_ignore_per_request_objects(self):
        """Sessions do not leak into the cache key."""
        key_args = lambda db, page: (page,)
        assert cache.make_cache_key("p", *key_args(object(), 2)) == cache.make_cache_key("p", *key_args(object(), 2))

    def test_redis_read_error_falls_through(self, monkeypatch):
        """Redis errors fall back to computing."""
        client = Mock()
        client.get.side_effect = RedisError("connection reset")
        monkeypatch.setattr(cache, "get_redis_client", lambda: client)

        @cache.cache_result("test")
        def compute():
            return {"fresh": True}

        assert compute() == {"fresh": True}

    def test_invalidate(self, monkeypatch):
        """Invalidation deletes every key under the prefix."""
        client = Mock()
        client.scan_iter.return_value = iter(["transparency:a", "transparency:b"])
        client.delete.return_value = 2
        monkeypatch.setattr(cache, "get_redis_client", lambda: client)

        assert cache.invalidate_cache("transparency") == 2
        client.scan_iter.assert_called_once_with(match="transparency:*")

    def test_invalidate_without_redis(self, monkeypatch):
        """Invalidation is a no-op without Redis."""
        monkeypatch.setattr(cache, "get_redis_client", lambda: None)
        assert cache.invalidate_cache("transparency") == 0


class TestAuth:

    def token(self, claims, secret=None):
        return jwt.encode(claims, secret or settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    def test_decode_subject(self):
        """The sub claim is the user id."""
        assert decode_user_id(self.token({"sub": "user-7"})) == "user-7"

    @pytest.mark.parametrize("token", ["garbage", None])
    def test_invalid_token(self, token):
        """Garbage and wrongly signed tokens decode to None."""
        token = token or self.token({"sub": "user-7"}, secret="other-secret")
        assert decode_user_id(token) is None

    def test_token_without_subject(self):
        """Tokens without sub are rejected."""
        assert decode_user_id(self.token({"role": "admin"})) is None

    def test_current_user_required(self):
        """Required auth raises 401."""
        with pytest.raises(HTTPException) as exc_info:
            get_current_user_id(None)
        assert exc_info.value.status_code == 401

    def test_optional_user(self):
        """Optional auth tolerates no token."""
        assert get_optional_user_id(None) is None
        assert get_optional_user_id(self.token({"sub": "user-7"})) == "user-7"
