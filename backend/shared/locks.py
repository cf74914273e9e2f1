"""
Per-key asyncio locks.

Used to serialize mutations of a single subject, code or payment session
inside one process. Cross-process safety comes from the compare-and-swap
writes in the repositories; these locks only avoid needless retries.
"""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from typing import AsyncIterator


class KeyedLock:
    """
    A family of asyncio locks indexed by key.

    Locks are created on first use and discarded once no task holds or
    waits on them, so the map does not grow with every key ever seen.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        self._waiters[key] += 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[key] -= 1
            if self._waiters[key] == 0:
                del self._waiters[key]
                self._locks.pop(key, None)

    def __len__(self) -> int:
        return len(self._locks)
