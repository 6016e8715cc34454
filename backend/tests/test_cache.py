"""Tests for the current-user cache."""

import pytest
import redis.asyncio as redis

from candidate_onboarding.config import settings
from candidate_onboarding.utils import cache
from candidate_onboarding.utils.cache import (
    get_cached_user,
    invalidate_user,
    set_cached_user,
    user_cache_key,
)


class StubRedis:
    """Just enough of redis.asyncio.Redis for the cache helpers."""

    def __init__(self, broken: bool = False):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.broken = broken

    def _check(self):
        if self.broken:
            raise redis.ConnectionError("Connection refused")

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.store[key] = value
        self.ttls[key] = ttl

    async def delete(self, key):
        self._check()
        self.store.pop(key, None)


@pytest.fixture
def stub_redis(monkeypatch):
    stub = StubRedis()

    async def fake_get_redis():
        return stub

    monkeypatch.setattr(settings, "cache_enabled", True)
    monkeypatch.setattr(cache, "get_redis", fake_get_redis)
    return stub


@pytest.mark.unit
@pytest.mark.asyncio
class TestUserCache:

    async def test_key(self):
        assert user_cache_key("auth|jane") == "users:me:auth|jane"

    async def test_disabled_is_a_no_op(self, monkeypatch):
        monkeypatch.setattr(settings, "cache_enabled", False)

        await set_cached_user("auth|jane", {"id": "u1"})
        assert await get_cached_user("auth|jane") is None

    async def test_set_get_invalidate(self, stub_redis):
        await set_cached_user("auth|jane", {"id": "u1"})

        assert stub_redis.ttls["users:me:auth|jane"] == settings.user_cache_ttl_seconds
        assert await get_cached_user("auth|jane") == {"id": "u1"}

        await invalidate_user("auth|jane")
        assert await get_cached_user("auth|jane") is None

    async def test_redis_errors_fall_through(self, stub_redis):
        stub_redis.broken = True

        await set_cached_user("auth|jane", {"id": "u1"})
        await invalidate_user("auth|jane")
        assert await get_cached_user("auth|jane") is None
