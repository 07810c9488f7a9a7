"""Async Kraken REST API client with tier-aware rate limiting and request signing."""

from kraken_client.adapters.rate_limit import AccountTier
from kraken_client.client import KrakenClient, create_client
from kraken_client.core.errors import (
    AppError,
    ClientClosedAppError,
    ConfigurationAppError,
    ProtocolAppError,
    TransportAppError,
    UsageAppError,
)
from kraken_client.schemas.envelope import KrakenResponse

__version__ = "0.1.0"

__all__ = [
    "AccountTier",
    "AppError",
    "ClientClosedAppError",
    "ConfigurationAppError",
    "KrakenClient",
    "KrakenResponse",
    "ProtocolAppError",
    "TransportAppError",
    "UsageAppError",
    "create_client",
]
