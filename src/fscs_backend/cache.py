"""Read-through cache with a fixed time-to-live.

The cached slot is guarded by a reader/writer lock: fresh reads share the
lock, and a caller that finds the value stale takes the write lock and
recomputes. Concurrent callers that all observe staleness queue on the write
lock; each re-checks freshness once it holds the lock, so only the first one
calls the producer.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


class ReadWriteLock:
    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer)
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()


@dataclass(frozen=True)
class _Entry(Generic[T]):  # noqa: UP046
    updated_at: float
    value: T | None = None
    error: BaseException | None = None


class TimedCache(Generic[T]):  # noqa: UP046
    def __init__(
        self,
        producer: Callable[[], Awaitable[T]],
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._producer = producer
        self._ttl = ttl_seconds
        self._clock = clock
        self._lock = ReadWriteLock()
        self._entry: _Entry[T] | None = None

    def _is_fresh(self, entry: _Entry[T] | None, *, retry_errors: bool) -> bool:
        if entry is None:
            return False
        if retry_errors and entry.error is not None:
            return False
        return self._clock() < entry.updated_at + self._ttl

    @staticmethod
    def _unwrap(entry: _Entry[T]) -> T:
        if entry.error is not None:
            raise entry.error
        return entry.value  # type: ignore[return-value]

    async def _load(self, *, retry_errors: bool) -> T:
        async with self._lock.read():
            entry = self._entry
            if self._is_fresh(entry, retry_errors=retry_errors):
                assert entry is not None
                return self._unwrap(entry)

        async with self._lock.write():
            entry = self._entry
            if not self._is_fresh(entry, retry_errors=retry_errors):
                try:
                    value = await self._producer()
                except Exception as exc:
                    entry = _Entry(updated_at=self._clock(), error=exc)
                else:
                    entry = _Entry(updated_at=self._clock(), value=value)
                self._entry = entry
            assert entry is not None
            return self._unwrap(entry)

    async def get(self) -> T:
        """Return the cached value, recomputing it once the TTL has passed.

        A failed recomputation is cached too: its error is raised again for
        every call until the TTL passes.
        """
        return await self._load(retry_errors=False)

    async def try_get(self) -> T:
        """Like :meth:`get`, but a cached error is treated as stale."""
        return await self._load(retry_errors=True)

    async def invalidate(self) -> None:
        async with self._lock.write():
            self._entry = None
