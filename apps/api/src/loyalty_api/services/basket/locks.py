"""Per-basket mutexes serializing voucher mutations within one process."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Hashable


class BasketLocks:
    """Lazily created `asyncio.Lock` per basket id, dropped once no one holds or awaits it."""

    def __init__(self) -> None:
        self._locks: Dict[Hashable, asyncio.Lock] = {}
        self._waiters: Dict[Hashable, int] = {}

    @asynccontextmanager
    async def hold(self, basket_id: Hashable) -> AsyncIterator[None]:
        lock = self._locks.setdefault(basket_id, asyncio.Lock())
        self._waiters[basket_id] = self._waiters.get(basket_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            remaining = self._waiters[basket_id] - 1
            if remaining:
                self._waiters[basket_id] = remaining
            else:
                self._waiters.pop(basket_id, None)
                self._locks.pop(basket_id, None)

    def is_locked(self, basket_id: Hashable) -> bool:
        lock = self._locks.get(basket_id)
        return bool(lock and lock.locked())

    def __len__(self) -> int:
        return len(self._locks)


basket_locks = BasketLocks()

__all__ = ["BasketLocks", "basket_locks"]
