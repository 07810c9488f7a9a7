"""Async client for the Kraken REST API.

Usage:
    async with KrakenClient(api_key, private_key, account_tier="tier-3") as client:
        server_time = await client.query_public("/0/public/Time")
        balance = await client.query_private("/0/private/Balance")
        if not balance.ok:
            ...
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, TypeVar

import httpx

from kraken_client.adapters.rate_limit import AbstractRateLimiter, AccountTier, create_rate_limiters
from kraken_client.core.config import DEFAULT_API_BASE_URL, Settings, load_settings
from kraken_client.core.errors import ConfigurationAppError
from kraken_client.core.nonce import NonceGetter, WallClockNonceSource
from kraken_client.core.signing import RequestSigner
from kraken_client.schemas.envelope import KrakenResponse
from kraken_client.services.query_dispatcher import QueryDispatcher

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _validate_base_url(api_base_url: str | None) -> httpx.URL:
    """Parse the base URL, rejecting anything but absolute http(s) URLs."""

    if not api_base_url:
        raise ConfigurationAppError(
            code="kraken_missing_base_url",
            message="An API base URL is required",
            details={"field": "api_base_url"},
        )
    try:
        url = httpx.URL(api_base_url)
    except httpx.InvalidURL as exc:
        raise ConfigurationAppError(
            code="kraken_invalid_base_url",
            message=f"Malformed API base URL: {api_base_url!r}",
            details={"field": "api_base_url"},
        ) from exc
    if url.scheme not in {"http", "https"} or not url.host:
        raise ConfigurationAppError(
            code="kraken_invalid_base_url",
            message=f"API base URL must be an absolute http(s) URL: {api_base_url!r}",
            details={"field": "api_base_url", "hint": f"e.g. {DEFAULT_API_BASE_URL}"},
        )
    return url


class KrakenClient:
    """Async HTTP client for the exchange API.

    Holds one HTTP connection pool, the signer's key material, the nonce
    source and the public/private rate limiters for its whole lifetime.
    All of them are shared by concurrent calls.
    """

    def __init__(
        self,
        api_key: str,
        private_key: str,
        account_tier: AccountTier | str | None = AccountTier.NONE,
        api_base_url: str = DEFAULT_API_BASE_URL,
        get_nonce: NonceGetter | None = None,
        *,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Key required to make private calls.
            private_key: Base64 secret used to sign private calls.
            account_tier: Enables the rate limiters matching the account's
                tier. ``AccountTier.NONE`` or an unrecognized value disables them.
            api_base_url: Base address of the API.
            get_nonce: Nonce getter; values must increase across calls.
                Defaults to a wall-clock tick counter.
            timeout_seconds: HTTP request timeout.
            transport: Optional httpx transport (e.g. ``httpx.MockTransport``).

        Raises:
            ConfigurationAppError: If credentials or the base URL are invalid.
        """
        base_url = _validate_base_url(api_base_url)
        self._signer = RequestSigner(api_key, private_key)

        self._account_tier = AccountTier.parse(account_tier)
        self._rate_limiters = create_rate_limiters(self._account_tier)
        self._api_base_url = str(base_url)

        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )
        self._dispatcher = QueryDispatcher(
            http_client=self._http,
            signer=self._signer,
            get_nonce=get_nonce or WallClockNonceSource(),
            public_rate_limiter=self._rate_limiters.public,
            private_rate_limiter=self._rate_limiters.private,
        )

        logger.info(
            "kraken.client.created",
            extra={
                "api_base_url": self._api_base_url,
                "account_tier": self._account_tier.value,
                "rate_limited": self._rate_limiters.private.enabled,
            },
        )

    def __repr__(self) -> str:
        return (
            f"KrakenClient(api_base_url={self._api_base_url!r}, "
            f"account_tier={self._account_tier.value!r}, closed={self.closed})"
        )

    @property
    def api_key(self) -> str:
        return self._signer.api_key

    @property
    def account_tier(self) -> AccountTier:
        return self._account_tier

    @property
    def api_base_url(self) -> str:
        return self._api_base_url

    @property
    def public_rate_limiter(self) -> AbstractRateLimiter:
        return self._rate_limiters.public

    @property
    def private_rate_limiter(self) -> AbstractRateLimiter:
        return self._rate_limiters.private

    @property
    def closed(self) -> bool:
        return self._dispatcher.closed

    async def query_public(
        self,
        path: str,
        args: Mapping[str, str | None] | None = None,
        *,
        cost: int = 1,
        result_type: type[T] | Any = Any,
    ) -> KrakenResponse[T]:
        """Send a public POST request. See ``QueryDispatcher.query_public``."""
        return await self._dispatcher.query_public(path, args, cost=cost, result_type=result_type)

    async def query_private(
        self,
        path: str,
        args: Mapping[str, str | None] | None = None,
        *,
        cost: int = 1,
        otp: str | None = None,
        result_type: type[T] | Any = Any,
    ) -> KrakenResponse[T]:
        """Send a signed private POST request. See ``QueryDispatcher.query_private``."""
        return await self._dispatcher.query_private(
            path, args, cost=cost, otp=otp, result_type=result_type
        )

    async def aclose(self) -> None:
        """Release the HTTP client and key material.

        Calls waiting on a rate limiter fail at once. Calling it again is a
        no-op. Later queries raise ClientClosedAppError.
        """
        if self._dispatcher.closed:
            return
        self._dispatcher.close()
        self._rate_limiters.public.close()
        self._rate_limiters.private.close()
        self._signer.close()
        await self._http.aclose()
        logger.info("kraken.client.closed", extra={"api_base_url": self._api_base_url})

    async def __aenter__(self) -> "KrakenClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def create_client(
    config: Settings | None = None,
    *,
    get_nonce: NonceGetter | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> KrakenClient:
    """Factory building a client from Pydantic Settings.

    Resolves settings with ``load_settings()`` unless a Settings instance
    is given.

    Returns:
        KrakenClient: Configured client instance.

    Raises:
        ConfigurationAppError: If credentials are missing or invalid.
    """
    cfg = (config or load_settings()).kraken

    if not cfg.api_key:
        raise ConfigurationAppError(
            code="kraken_missing_api_key",
            message="KRAKEN_API_KEY environment variable is required",
            details={"field": "api_key"},
        )
    if cfg.private_key is None or not cfg.private_key.get_secret_value():
        raise ConfigurationAppError(
            code="kraken_missing_private_key",
            message="KRAKEN_PRIVATE_KEY environment variable is required",
            details={"field": "private_key"},
        )

    return KrakenClient(
        api_key=cfg.api_key,
        private_key=cfg.private_key.get_secret_value(),
        account_tier=cfg.account_tier,
        api_base_url=cfg.api_base_url,
        get_nonce=get_nonce,
        timeout_seconds=cfg.timeout_seconds,
        transport=transport,
    )
