"""Rate limiting adapters.

A client owns two limiters (public and private). Each is either unlimited or
a decaying cost counter configured from the account tier table.
"""

from kraken_client.adapters.rate_limit.base import AbstractRateLimiter, AccountTier, RateLimitRule
from kraken_client.adapters.rate_limit.factory import (
    PUBLIC_RATE_LIMIT,
    TIER_RATE_LIMITS,
    RateLimiterPair,
    create_rate_limiters,
)
from kraken_client.adapters.rate_limit.in_memory import DecayingRateLimiter
from kraken_client.adapters.rate_limit.unlimited import UnlimitedRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "AccountTier",
    "DecayingRateLimiter",
    "PUBLIC_RATE_LIMIT",
    "RateLimitRule",
    "RateLimiterPair",
    "TIER_RATE_LIMITS",
    "UnlimitedRateLimiter",
    "create_rate_limiters",
]
