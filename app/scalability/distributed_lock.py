"""Redis-based distributed locking. SETNX pattern, TTL, safe release. Keeps one retention sweep running across nodes."""

import uuid
from typing import Protocol


class RedisLockBackend(Protocol):
    """Minimal Redis operations for distributed lock. Injected; no global state."""

    async def set_nx_ex(self, key: str, value: str, ttl: int) -> bool: ...
    async def delete_if_value(self, key: str, value: str) -> bool: ...


LOCK_PREFIX = "lock:"


class DistributedLock:
    """
    Lock held by whoever wrote a random token under the key first.
    Only the holder of the token can release; the TTL frees a crashed holder's lock.
    """

    def __init__(self, backend: RedisLockBackend, key_prefix: str = LOCK_PREFIX) -> None:
        self._backend = backend
        self._prefix = key_prefix
        self._held: dict[str, str] = {}

    def _key(self, name: str) -> str:
        return self._prefix + name

    def is_held(self, name: str) -> bool:
        return name in self._held

    async def acquire(self, name: str, ttl: int) -> bool:
        """True if this instance now holds the lock, False if someone else does."""
        token = uuid.uuid4().hex
        if not await self._backend.set_nx_ex(self._key(name), token, ttl):
            return False
        self._held[name] = token
        return True

    async def release(self, name: str) -> bool:
        """Compare-and-delete. False when the lock was not ours or had already expired."""
        token = self._held.pop(name, None)
        if token is None:
            return False
        return await self._backend.delete_if_value(self._key(name), token)
