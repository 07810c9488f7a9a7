"""Rate limiter interfaces.

The dispatcher depends on this abstraction only, so "no limit" and "decaying
budget" are interchangeable variants rather than a nullable reference.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from kraken_client.core.errors import ClientClosedAppError


class AccountTier(str, Enum):
    """Account verification tier selecting the private-call budget."""

    NONE = "none"
    TIER_2 = "tier-2"
    TIER_3 = "tier-3"
    TIER_4 = "tier-4"

    @classmethod
    def parse(cls, value: "AccountTier | str | None") -> "AccountTier":
        """Resolve a tier from configuration input.

        Accepts enum members and strings such as ``"tier-3"``, ``"Tier3"`` or
        ``"tier_3"``. Anything unrecognized (including ``None``) resolves to
        ``AccountTier.NONE``, which disables rate limiting.

        Examples:
            >>> AccountTier.parse("Tier3")
            <AccountTier.TIER_3: 'tier-3'>
            >>> AccountTier.parse("unknown")
            <AccountTier.NONE: 'none'>
        """
        if isinstance(value, cls):
            return value
        if not value:
            return cls.NONE
        normalized = re.sub(r"^tier[-_ ]?", "tier-", str(value).strip().lower())
        try:
            return cls(normalized)
        except ValueError:
            return cls.NONE


def limiter_closed_error() -> ClientClosedAppError:
    return ClientClosedAppError(
        code="kraken_rate_limiter_closed",
        message="The rate limiter was closed and admits no further calls",
    )


@dataclass(frozen=True)
class RateLimitRule:
    """Budget parameters of a limiter.

    Attributes:
        limit: Maximum outstanding cost before callers wait.
        decay_interval: Seconds after which one unit of cost is forgiven.
    """

    limit: int
    decay_interval: float


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    async def admit(self, cost: int = 1) -> None:
        """Wait until ``cost`` units fit in the budget, then consume them.

        Args:
            cost: Units to consume (default 1).

        Raises:
            ValueError: If cost is lower than 1.
            ClientClosedAppError: If the limiter was closed before admission.
        """
        raise NotImplementedError

    @property
    @abstractmethod
    def enabled(self) -> bool:
        """Whether this limiter tracks cost at all."""
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        """Refuse further admissions and fail callers currently waiting.

        Waiting and later callers raise ClientClosedAppError without
        consuming budget. Idempotent.
        """
        raise NotImplementedError
