import pytest
import redis.asyncio as redis

from rental_booking.core import locks


@pytest.mark.asyncio
async def test_held_lock_rejects_second_holder(dummy_redis):
    async with locks.held_lock("payment:b1", 30) as first:
        async with locks.held_lock("payment:b1", 30) as second:
            assert first is True
            assert second is False
        assert "rental_booking:lock:payment:b1" in dummy_redis.store

    assert dummy_redis.store == {}


@pytest.mark.asyncio
async def test_stale_release_keeps_new_holders_lock(dummy_redis):
    key = "rental_booking:lock:payment:b1"
    stale = await locks.acquire_lock("payment:b1", 30)
    assert stale is not None

    # ttl elapsed and another worker took the lock
    dummy_redis.store.pop(key)
    fresh = await locks.acquire_lock("payment:b1", 30)
    assert fresh is not None and fresh != stale

    assert await locks.release_lock("payment:b1", stale) is False
    assert dummy_redis.store[key] == fresh

    assert await locks.release_lock("payment:b1", fresh) is True
    assert key not in dummy_redis.store


@pytest.mark.asyncio
async def test_lock_fails_open_when_redis_is_down(monkeypatch):
    class DownRedis:
        async def set(self, *args, **kwargs):
            raise redis.ConnectionError("down")

        async def eval(self, *args):
            raise redis.ConnectionError("down")

    monkeypatch.setattr(locks, "redis_client", DownRedis())

    async with locks.held_lock("payment:b1", 30) as acquired:
        assert acquired is True
