"""Token bucket throttling for generative-AI calls.

The bucket is an ordinary object handed to whatever issues model calls;
there is no process-wide instance.
"""

import asyncio
import time
from typing import Awaitable, Callable

import logfire

from src.constants import AI_RATE_LIMIT_REQUESTS, AI_RATE_LIMIT_WINDOW_SECONDS


class TokenBucket:
    """Async token bucket: ``capacity`` tokens refilled evenly over a window.

    With the defaults, at most 5 calls start in any 60 second window after
    the initial burst is spent.
    """

    def __init__(
        self,
        capacity: int = AI_RATE_LIMIT_REQUESTS,
        window_seconds: float = AI_RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the bucket, full.

        Args:
            capacity: Maximum tokens (burst size)
            window_seconds: Time to refill an empty bucket completely
            clock: Monotonic clock in seconds
            sleep: Coroutine used to wait for tokens

        Raises:
            ValueError: If capacity or window is not positive
        """
        if capacity <= 0 or window_seconds <= 0:
            raise ValueError("capacity and window_seconds must be positive")
        self._capacity = capacity
        self._window_seconds = window_seconds
        self._rate = capacity / window_seconds
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(capacity)
        self._updated = clock()
        self._lock = asyncio.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def available(self) -> float:
        """Tokens currently in the bucket."""
        self._refill()
        return self._tokens

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated)
        self._tokens = min(float(self._capacity), self._tokens + elapsed * self._rate)
        self._updated = now

    def try_acquire(self) -> bool:
        """Take a token if one is available; never waits."""
        self._refill()
        if self._tokens >= 1:
            self._tokens -= 1
            return True
        return False

    def wait_time(self) -> float:
        """Seconds until the next token is available (0 if one is ready)."""
        self._refill()
        if self._tokens >= 1:
            return 0.0
        return (1 - self._tokens) / self._rate

    async def acquire(self) -> None:
        """Wait until a token is available, then take it.

        Waiters are served one at a time, in arrival order.
        """
        async with self._lock:
            while not self.try_acquire():
                delay = self.wait_time()
                logfire.info(
                    "AI rate limit reached, waiting",
                    wait_seconds=round(delay, 3),
                    capacity=self._capacity,
                    window_seconds=self._window_seconds,
                )
                await self._sleep(delay)
