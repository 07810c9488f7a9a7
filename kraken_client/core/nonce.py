"""Nonce sources for private calls.

The exchange rejects a private call whose nonce is not greater than the last
one it accepted for the same API key.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

# Ticks (100 ns units) between 0001-01-01 and the UNIX epoch.
_EPOCH_TICKS = 621_355_968_000_000_000

NonceGetter = Callable[[], int]


def utc_ticks() -> int:
    """Current UTC time as 100 ns ticks since 0001-01-01."""

    return _EPOCH_TICKS + time.time_ns() // 100


class WallClockNonceSource:
    """Default nonce generator derived from the wall clock.

    Values follow the clock but never repeat or go backwards within one
    instance, even if the clock is adjusted or two calls land on the same
    tick.
    """

    def __init__(self, clock: Callable[[], int] = utc_ticks) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            self._last = max(self._clock(), self._last + 1)
            return self._last

    @property
    def last_issued(self) -> int:
        return self._last
