"""Tier table and factory for the client's pair of rate limiters."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Mapping, NamedTuple

from kraken_client.adapters.rate_limit.base import AbstractRateLimiter, AccountTier, RateLimitRule
from kraken_client.adapters.rate_limit.in_memory import DecayingRateLimiter
from kraken_client.adapters.rate_limit.unlimited import UnlimitedRateLimiter

logger = logging.getLogger(__name__)

# Private-call budgets per account tier.
TIER_RATE_LIMITS: Mapping[AccountTier, RateLimitRule] = MappingProxyType(
    {
        AccountTier.TIER_2: RateLimitRule(limit=15, decay_interval=3.0),
        AccountTier.TIER_3: RateLimitRule(limit=20, decay_interval=2.0),
        AccountTier.TIER_4: RateLimitRule(limit=20, decay_interval=1.0),
    }
)

# Budget for public calls, enabled together with any private tier.
PUBLIC_RATE_LIMIT = RateLimitRule(limit=20, decay_interval=1.0)


class RateLimiterPair(NamedTuple):
    public: AbstractRateLimiter
    private: AbstractRateLimiter


def create_rate_limiters(tier: AccountTier | str | None, **limiter_kwargs) -> RateLimiterPair:
    """Build the public and private limiters for an account tier.

    A tier present in ``TIER_RATE_LIMITS`` enables the private limiter with
    its rule and the public limiter with ``PUBLIC_RATE_LIMIT``. Any other
    tier, including ``AccountTier.NONE``, disables both.

    Args:
        tier: Account tier or its string form.
        **limiter_kwargs: Forwarded to DecayingRateLimiter (clock, sleep).

    Returns:
        RateLimiterPair with the public and private limiters.
    """
    resolved = AccountTier.parse(tier)
    rule = TIER_RATE_LIMITS.get(resolved)

    if rule is None:
        logger.debug("rate_limit.disabled", extra={"account_tier": resolved.value})
        return RateLimiterPair(public=UnlimitedRateLimiter(), private=UnlimitedRateLimiter())

    logger.debug(
        "rate_limit.enabled",
        extra={
            "account_tier": resolved.value,
            "private_limit": rule.limit,
            "private_decay_s": rule.decay_interval,
            "public_limit": PUBLIC_RATE_LIMIT.limit,
            "public_decay_s": PUBLIC_RATE_LIMIT.decay_interval,
        },
    )
    return RateLimiterPair(
        public=DecayingRateLimiter.from_rule(PUBLIC_RATE_LIMIT, **limiter_kwargs),
        private=DecayingRateLimiter.from_rule(rule, **limiter_kwargs),
    )
