import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_LIMIT = 8


class ConcurrencyLimiter:
    """Caps the number of in-flight upstream calls.

    One instance is shared by every enrolment and invoice fetch of the
    process, so both call types compete for the same budget. Waiters are
    admitted in FIFO order by the underlying asyncio.Semaphore.
    """

    def __init__(self, limit: int = DEFAULT_LIMIT) -> None:
        if limit < 1:
            msg = f"limit must be at least 1, got {limit}"
            raise ValueError(msg)

        self.limit = limit
        self._semaphore = asyncio.Semaphore(limit)
        self.active = 0
        self.peak = 0

    async def __aenter__(self) -> "ConcurrencyLimiter":
        await self._semaphore.acquire()
        self.active += 1
        self.peak = max(self.peak, self.active)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.active -= 1
        self._semaphore.release()

    async def run(self, factory: Callable[[], Awaitable[T]]) -> T:
        """Await factory() once a slot is free"""
        async with self:
            return await factory()
