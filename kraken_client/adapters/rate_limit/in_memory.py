"""In-memory decaying cost limiter.

Models the exchange's call-rate counter: every call adds its cost to a
counter, the counter drops by one unit every ``decay_interval`` seconds, and a
call may only start while the counter plus its cost stays within ``limit``.

Notes:
- Per-client only: two clients sharing an API key each keep their own count.
- Task-safe: admissions are serialized by an ``asyncio.Lock``, which hands
  the turn to waiters in FIFO order, so no waiter starves.
"""

from __future__ import annotations

import asyncio
import logging
import math
import time
from typing import Awaitable, Callable

from kraken_client.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitRule,
    limiter_closed_error,
)

logger = logging.getLogger(__name__)

# Absorbs float rounding when a sleep ends exactly on an interval boundary.
_TICK_TOLERANCE = 1e-9


class DecayingRateLimiter(AbstractRateLimiter):
    """Rate limiter with a cost counter that decays by whole intervals.

    Decay advances ``last_decay`` by the number of whole intervals consumed
    rather than resetting it to the current time, so the fractional part of an
    interval carries over to the next call.
    """

    def __init__(
        self,
        *,
        limit: int,
        decay_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the limiter.

        Args:
            limit: Maximum outstanding cost before callers wait.
            decay_interval: Seconds needed to forgive one unit of cost.
            clock: Monotonic time source in seconds.
            sleep: Coroutine function used to suspend a waiting caller.

        Raises:
            ValueError: If limit or decay_interval are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if decay_interval <= 0:
            raise ValueError("decay_interval must be > 0")

        self._limit = limit
        self._decay_interval = float(decay_interval)
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._current_cost = 0
        self._last_decay = clock()
        self._closed = False
        self._sleeper: asyncio.Future[None] | None = None

    @classmethod
    def from_rule(cls, rule: RateLimitRule, **kwargs) -> "DecayingRateLimiter":
        return cls(limit=rule.limit, decay_interval=rule.decay_interval, **kwargs)

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return (
            f"DecayingRateLimiter(limit={self._limit}, decay_interval={self._decay_interval}, "
            f"current_cost={self._current_cost})"
        )

    @property
    def enabled(self) -> bool:
        return True

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def decay_interval(self) -> float:
        return self._decay_interval

    @property
    def current_cost(self) -> int:
        """Counter value as of the last admission (decay not applied)."""
        return self._current_cost

    def _apply_decay(self, now: float) -> None:
        """Forgive one unit per whole interval elapsed since the last decay."""
        ticks = math.floor((now - self._last_decay) / self._decay_interval + _TICK_TOLERANCE)
        if ticks <= 0:
            return
        self._current_cost = max(0, self._current_cost - ticks)
        self._last_decay += ticks * self._decay_interval

    def _ready_at(self, cost: int) -> float:
        """Earliest instant at which ``cost`` fits, given the current state.

        A cost above ``limit`` can never fit entirely; it is admitted once the
        counter has drained to zero.
        """
        excess = min(self._current_cost + cost - self._limit, self._current_cost)
        return self._last_decay + excess * self._decay_interval

    async def admit(self, cost: int = 1) -> None:
        """Wait until ``cost`` fits in the budget, then consume it.

        Cost is added only once the caller is admitted; cancelling a waiting
        caller leaves the counter untouched.

        Args:
            cost: Units to consume (default 1).

        Raises:
            ValueError: If cost is lower than 1.
            ClientClosedAppError: If ``close()`` ran before admission.
        """
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if self._closed:
            raise limiter_closed_error()

        async with self._lock:
            self._apply_decay(self._clock())

            while self._current_cost > 0 and self._current_cost + cost > self._limit:
                if self._closed:
                    raise limiter_closed_error()
                now = self._clock()
                delay = max(0.0, self._ready_at(cost) - now)
                logger.debug(
                    "rate_limit.waiting",
                    extra={
                        "limit": self._limit,
                        "current_cost": self._current_cost,
                        "cost": cost,
                        "wait_s": round(delay, 3),
                    },
                )
                await self._wait(delay)
                self._apply_decay(self._clock())

            if self._closed:
                raise limiter_closed_error()
            self._current_cost += cost
            logger.debug(
                "rate_limit.admitted",
                extra={
                    "limit": self._limit,
                    "current_cost": self._current_cost,
                    "cost": cost,
                },
            )

    async def _wait(self, delay: float) -> None:
        """Sleep for ``delay`` seconds unless ``close()`` cuts the sleep short."""
        self._sleeper = asyncio.ensure_future(self._sleep(delay))
        try:
            await self._sleeper
        except asyncio.CancelledError:
            task = asyncio.current_task()
            # Only the sleeper was cancelled, not the waiting task itself.
            if self._closed and task is not None and task.cancelling() == 0:
                raise limiter_closed_error() from None
            raise
        finally:
            self._sleeper = None

    def close(self) -> None:
        """Fail the current waiter and everyone queued behind it."""
        if self._closed:
            return
        self._closed = True
        if self._sleeper is not None:
            self._sleeper.cancel()
        logger.debug("rate_limit.closed", extra={"limit": self._limit})
