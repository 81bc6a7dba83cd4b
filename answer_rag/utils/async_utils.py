"""Async utility functions."""

import asyncio
import time
from typing import Awaitable, Optional, TypeVar

T = TypeVar('T')


class Deadline:
    """Overall time budget shared by the stages of one request."""

    def __init__(self, total_seconds: float) -> None:
        self.total_seconds = total_seconds
        self._expires_at = time.monotonic() + total_seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - time.monotonic())

    @property
    def expired(self) -> bool:
        return self.remaining() <= 0.0

    def budget(self, per_call_timeout: Optional[float] = None) -> float:
        """Timeout for the next call: the per-call bound capped by what is left."""
        remaining = self.remaining()
        if per_call_timeout is None:
            return remaining
        return min(per_call_timeout, remaining)


async def run_with_timeout(
    coro: Awaitable[T],
    timeout_seconds: float,
) -> T:
    """Await a coroutine, raising asyncio.TimeoutError once the timeout elapses."""
    if timeout_seconds <= 0:
        # Close the coroutine so it is not reported as never awaited
        close = getattr(coro, "close", None)
        if close is not None:
            close()
        raise asyncio.TimeoutError()
    return await asyncio.wait_for(coro, timeout=timeout_seconds)


def backoff_delay(
    attempts: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    backoff_factor: float = 2.0,
) -> float:
    """Exponential backoff delay after ``attempts`` failures."""
    if attempts <= 0:
        return 0.0
    return min(base_delay * (backoff_factor ** (attempts - 1)), max_delay)
