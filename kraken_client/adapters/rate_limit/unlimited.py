"""Rate limiter variant used when no tier is configured."""

from __future__ import annotations

from kraken_client.adapters.rate_limit.base import AbstractRateLimiter, limiter_closed_error


class UnlimitedRateLimiter(AbstractRateLimiter):
    """Admits every call immediately; only remembers whether it was closed."""

    def __init__(self) -> None:
        self._closed = False

    async def admit(self, cost: int = 1) -> None:
        if cost < 1:
            raise ValueError("cost must be >= 1")
        if self._closed:
            raise limiter_closed_error()

    @property
    def enabled(self) -> bool:
        return False

    def close(self) -> None:
        self._closed = True

    def __repr__(self) -> str:  # pragma: no cover - representation only
        return "UnlimitedRateLimiter()"
