# app/infrastructure/cache/redis_client.py

from typing import Optional

import redis.asyncio as redis

_RELEASE_SCRIPT = (
    "if redis.call('get', KEYS[1]) == ARGV[1] "
    "then return redis.call('del', KEYS[1]) else return 0 end"
)


class RedisClient:
    """Lock backend over redis.asyncio. Satisfies RedisLockBackend."""

    def __init__(self, redis_url: str):
        self.client = redis.from_url(
            redis_url,
            decode_responses=True,
        )

    async def ping(self) -> bool:
        return bool(await self.client.ping())

    async def set_nx_ex(self, key: str, value: str, ttl: int) -> bool:
        return bool(await self.client.set(key, value, nx=True, ex=ttl))

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(key)

    async def delete_if_value(self, key: str, value: str) -> bool:
        """Atomic compare-and-delete."""
        result = await self.client.eval(_RELEASE_SCRIPT, 1, key, value)
        return bool(result)

    async def close(self) -> None:
        await self.client.aclose()
