"""Bound the number of simultaneous outbound calls to the metadata provider."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar


T = TypeVar("T")


class ConcurrencyLimiter:
    """At most ``concurrency`` scheduled tasks run at once, in FIFO order.

    A ``None`` ceiling disables the bound. Tasks that finish, successfully or
    not, release their slot to the oldest waiter. Started tasks are never
    cancelled by the limiter.
    """

    def __init__(self, concurrency: int | None) -> None:
        if concurrency is not None and concurrency < 1:
            raise ValueError("concurrency must be >= 1 or None")
        self.concurrency = concurrency
        self._semaphore: asyncio.Semaphore | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._active = 0
        self._pending = 0

    @property
    def active(self) -> int:
        return self._active

    @property
    def pending(self) -> int:
        return self._pending

    async def schedule(self, factory: Callable[[], Awaitable[T]]) -> T:
        semaphore = self._bind()
        if semaphore is None:
            self._active += 1
            try:
                return await factory()
            finally:
                self._active -= 1

        self._pending += 1
        try:
            await semaphore.acquire()
        finally:
            self._pending -= 1
        self._active += 1
        try:
            return await factory()
        finally:
            self._active -= 1
            semaphore.release()

    async def map(self, factories: Iterable[Callable[[], Awaitable[T]]]) -> list[T | BaseException]:
        """Run every factory through the limiter; results keep submission order."""

        return await asyncio.gather(
            *(self.schedule(factory) for factory in factories),
            return_exceptions=True,
        )

    def _bind(self) -> asyncio.Semaphore | None:
        if self.concurrency is None:
            return None
        loop = asyncio.get_running_loop()
        # a semaphore belongs to one event loop; rebind only while idle
        if self._semaphore is None or (self._loop is not loop and not (self._active or self._pending)):
            self._semaphore = asyncio.Semaphore(self.concurrency)
            self._loop = loop
        return self._semaphore
