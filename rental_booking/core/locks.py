"""Short-lived Redis locks guarding cross-row invariants.

The database stays the source of truth (unique indexes back every lock);
the lock only turns a race into a clean rejection before the gateway is
called twice for the same booking.
"""
from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as redis

from rental_booking.core.config import Config
from rental_booking.core.middlewares import logger

redis_client = redis.from_url(
    Config.REDIS_URL,
    decode_responses=True,
    socket_connect_timeout=2,
)

LOCK_NAMESPACE = "rental_booking:lock"

# delete only while the key still holds our token
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def _lock_key(key: str) -> str:
    return f"{LOCK_NAMESPACE}:{key}"


async def acquire_lock(key: str, ttl_s: int) -> str | None:
    """Return the holder token, or None when someone else holds ``key``."""
    token = uuid.uuid4().hex
    try:
        acquired = await redis_client.set(_lock_key(key), token, nx=True, ex=ttl_s)
    except redis.RedisError as exc:
        # Fail open: the unique index still rejects the loser of the race.
        logger.warning("Lock backend unavailable for %s: %s", key, exc)
        return token
    return token if acquired else None


async def release_lock(key: str, token: str) -> bool:
    try:
        return bool(await redis_client.eval(_RELEASE_SCRIPT, 1, _lock_key(key), token))
    except redis.RedisError as exc:
        logger.warning("Could not release lock %s: %s", key, exc)
        return False


@asynccontextmanager
async def held_lock(key: str, ttl_s: int | None = None) -> AsyncIterator[bool]:
    token = await acquire_lock(key, ttl_s or Config.PAYMENT_LOCK_TTL_SECONDS)
    try:
        yield token is not None
    finally:
        if token is not None:
            await release_lock(key, token)
