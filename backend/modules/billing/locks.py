"""
Per-key asyncio locking.

Webhook handlers do lookup-then-write on a billing row. Two deliveries that
touch the same user's row must not interleave inside one process, so the
reconciler serializes writes per user id. Locks are dropped once no task
holds or waits on them, keeping the table bounded by in-flight keys.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class KeyedLock:
    """A lazily-created asyncio.Lock per key, reference counted."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """
        Hold the lock for ``key`` for the duration of the block.

        Usage:
            async with locks.hold(user_id):
                ...
        """
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._waiters[key] = self._waiters.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)
