"""Bounded concurrency for outbound requests.

A ConcurrencyLimiter is created once per command run and handed to every
synchronization pass, so the number of simultaneous remote calls stays
bounded regardless of how deep or wide a document hierarchy is.
"""

import asyncio
from typing import Awaitable, Callable, TypeVar

T = TypeVar('T')

DEFAULT_CONCURRENCY = 10


class ConcurrencyLimiter:
    """Semaphore-backed limiter with an observable in-flight counter.

    Example:
        >>> limiter = ConcurrencyLimiter(5)
        >>> document = await limiter.run(api.fetch_document, "doc-id")
    """

    def __init__(self, limit: int = DEFAULT_CONCURRENCY):
        if limit < 1:
            raise ValueError(f"Concurrency limit must be at least 1, got {limit}")
        self.limit = limit
        self.in_flight = 0
        self._semaphore = asyncio.Semaphore(limit)

    async def __aenter__(self) -> "ConcurrencyLimiter":
        await self._semaphore.acquire()
        self.in_flight += 1
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.in_flight -= 1
        self._semaphore.release()

    async def run(self, func: Callable[..., Awaitable[T]], *args, **kwargs) -> T:
        """Await func(*args, **kwargs) while holding one slot."""
        async with self:
            return await func(*args, **kwargs)
