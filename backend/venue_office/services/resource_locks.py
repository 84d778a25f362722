"""Serialising locks for check-then-act writes against shared inventory."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import AsyncIterator, Hashable
from contextlib import AsyncExitStack, asynccontextmanager

logger = logging.getLogger(__name__)

LockKey = tuple[Hashable, ...]


class ResourceLocks:
    """One ``asyncio.Lock`` per resource key, alive while anyone holds or awaits it.

    Keys are acquired in sorted order so that two callers holding overlapping
    key sets cannot deadlock.
    """

    def __init__(self) -> None:
        self._locks: dict[LockKey, asyncio.Lock] = {}
        self._holders: Counter[LockKey] = Counter()

    def __len__(self) -> int:
        return len(self._locks)

    def _checkout(self, key: LockKey) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._holders[key] += 1
        return lock

    def _checkin(self, key: LockKey) -> None:
        self._holders[key] -= 1
        if self._holders[key] <= 0:
            del self._holders[key]
            del self._locks[key]

    def locked(self, key: LockKey) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    @asynccontextmanager
    async def hold(self, *keys: LockKey) -> AsyncIterator[None]:
        ordered = sorted(set(keys), key=repr)
        async with AsyncExitStack() as stack:
            for key in ordered:
                lock = self._checkout(key)
                # Registered before acquiring so the entry is dropped after release.
                stack.callback(self._checkin, key)
                await stack.enter_async_context(lock)
            logger.debug("Holding resource locks %s", ordered)
            yield


def room_key(room_id: Hashable) -> LockKey:
    return ("room", room_id)


def space_key(space_id: Hashable, service_date: Hashable) -> LockKey:
    return ("space", space_id, service_date)


def booking_key(booking_id: Hashable) -> LockKey:
    return ("booking", booking_id)


resource_locks = ResourceLocks()
