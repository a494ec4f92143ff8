"""
Locking primitives.

* ``VehicleLocks`` -- one ``asyncio.Lock`` per vehicle id.  Every ledger,
  status, ticket and maintenance mutation for a vehicle runs under its
  lock; different vehicles never contend.
* ``DistributedLock`` -- Redis lock used by the reminder worker so only
  one process runs a reminder cycle at a time.  SET NX EX to acquire and
  a Lua script for atomic check-and-delete on release.
"""

from __future__ import annotations

import asyncio
import uuid

import redis.asyncio as aioredis


class VehicleLocks:
    def __init__(self):
        self._locks: dict[int, asyncio.Lock] = {}

    def for_vehicle(self, vehicle_id: int) -> asyncio.Lock:
        lock = self._locks.get(vehicle_id)
        if lock is None:
            lock = self._locks[vehicle_id] = asyncio.Lock()
        return lock


class DistributedLock:
    def __init__(
        self, client: aioredis.Redis, key: str, ttl_seconds: int = 30
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire. Returns True on success."""
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        lua = """
        if redis.call("get", KEYS[1]) == ARGV[1] then
            return redis.call("del", KEYS[1])
        else
            return 0
        end
        """
        await self.redis.eval(lua, 1, self.key, self.token)

    # context-manager support
    async def __aenter__(self):
        acquired = await self.acquire()
        if not acquired:
            raise RuntimeError(f"Could not acquire lock: {self.key}")
        return self

    async def __aexit__(self, *args):
        await self.release()
