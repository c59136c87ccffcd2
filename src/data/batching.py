"""
Deadlines and batched concurrency for external calls.

A Deadline carries the remaining budget of a whole request; every
external call runs through Deadline.run() with its own, smaller timeout,
so timeout policy lives here instead of at each call site.

process_in_batches() fans a coroutine out over items, a fixed number at a
time, pausing between batches to respect upstream rate limits. An item
that raises yields no result; the rest of the batch is unaffected.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class Deadline:
    """Absolute time budget shared by every call made for one request."""

    def __init__(self, seconds: float, clock: Callable[[], float] = time.monotonic):
        if seconds <= 0:
            raise ValueError("deadline must be positive")
        self._clock = clock
        self.seconds = seconds
        self.expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self.expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0

    async def run(self, awaitable: Awaitable[T], timeout: Optional[float] = None) -> T:
        """
        Await with the tighter of `timeout` and the remaining budget.

        The abandoned operation is cancelled; its eventual result is discarded.

        Raises:
            asyncio.TimeoutError: If the budget runs out first
        """
        budget = self.remaining()
        if timeout is not None:
            budget = min(budget, timeout)
        if budget <= 0:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise asyncio.TimeoutError(f"deadline of {self.seconds}s exceeded")
        return await asyncio.wait_for(awaitable, timeout=budget)


async def process_in_batches(
    items: Sequence[T],
    processor: Callable[[T], Awaitable[R]],
    batch_size: int = 5,
    delay_ms: int = 200,
    deadline: Optional[Deadline] = None,
) -> List[R]:
    """
    Run `processor` over items, `batch_size` at a time.

    Args:
        items: Items to process, in order
        processor: Coroutine function applied to each item
        batch_size: Concurrent calls per batch
        delay_ms: Pause between batches (not after the last one)
        deadline: Optional request budget; once expired the remaining
            batches are not started and asyncio.TimeoutError is raised

    Returns:
        Results of the items that did not raise, in input order
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    results: List[R] = []
    for start in range(0, len(items), batch_size):
        if deadline is not None and deadline.expired:
            raise asyncio.TimeoutError(
                f"deadline exceeded after {start} of {len(items)} items"
            )

        batch = items[start:start + batch_size]
        outcomes = await asyncio.gather(
            *(processor(item) for item in batch),
            return_exceptions=True,
        )

        for item, outcome in zip(batch, outcomes):
            if isinstance(outcome, BaseException):
                if isinstance(outcome, asyncio.CancelledError):
                    raise outcome
                logger.error(f"Batch item failed ({_describe(item)}): {outcome}")
                continue
            results.append(outcome)

        if start + batch_size < len(items) and delay_ms > 0:
            await asyncio.sleep(delay_ms / 1000)

    return results


def _describe(item: Any) -> str:
    return str(getattr(item, "id", repr(item)))
