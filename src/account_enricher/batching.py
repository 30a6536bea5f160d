"""
Batch sizing and concurrency policy for external lookups.

Both external sources cap request size (100 accounts per
``getMultipleAccounts``, 50 mints per metadata call).  ``BatchPolicy``
states the chunk size and how many chunks may be in flight at once.  The
default of one in-flight batch keeps load on the RPC node bounded and
processes batches strictly in submission order.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterator, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class BatchPolicy:
    size: int
    max_in_flight: int = 1

    def __post_init__(self) -> None:
        if self.size < 1:
            raise ValueError(f"batch size must be >= 1, got {self.size}")
        if self.max_in_flight < 1:
            raise ValueError(f"max_in_flight must be >= 1, got {self.max_in_flight}")

    def chunks(self, items: Sequence[T]) -> Iterator[list[T]]:
        """Yield consecutive slices of at most ``size`` items."""
        for start in range(0, len(items), self.size):
            yield list(items[start:start + self.size])

    async def run(
        self,
        items: Sequence[T],
        worker: Callable[[list[T]], Awaitable[R]],
    ) -> list[R]:
        """Apply *worker* to every chunk; results come back in chunk order.

        With ``max_in_flight == 1`` each chunk is awaited before the next
        one starts.
        """
        batches = list(self.chunks(items))
        if self.max_in_flight == 1:
            return [await worker(batch) for batch in batches]

        semaphore = asyncio.Semaphore(self.max_in_flight)

        async def _guarded(batch: list[T]) -> R:
            async with semaphore:
                return await worker(batch)

        return list(await asyncio.gather(*(_guarded(b) for b in batches)))
