"""Query dispatcher: runs one public or private call end to end.

Each call is a linear pipeline with no retry state:

    admit (rate limiter) -> [mint nonce, encode, sign] -> POST -> decode

The body of a private call is encoded exactly once; the same string is
signed and sent, so the ``nonce`` field in the transmitted body always
matches the nonce fed into the signature.
"""

from __future__ import annotations

import logging
import time
import uuid
from contextlib import contextmanager
from typing import Any, Iterator, Mapping, TypeVar

import httpx
from pydantic import ValidationError

from kraken_client.adapters.rate_limit.base import AbstractRateLimiter
from kraken_client.core.errors import ClientClosedAppError, TransportAppError, UsageAppError
from kraken_client.core.form_encoding import url_encode
from kraken_client.core.logging import bind_call_id, reset_call_id
from kraken_client.core.nonce import NonceGetter
from kraken_client.core.signing import RequestSigner
from kraken_client.schemas.envelope import KrakenResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=utf-8"

# Response bodies attached to transport errors are truncated to this length.
_MAX_ERROR_BODY_CHARS = 500


def _validate_cost(cost: int) -> None:
    if cost < 1:
        raise ValueError("cost must be >= 1")


def _validate_path(path: str | None) -> str:
    if path is None:
        raise UsageAppError(
            code="kraken_missing_path",
            message="A request path is required",
            details={"field": "path"},
        )
    return path


@contextmanager
def _call_scope() -> Iterator[str]:
    """Run a call under a fresh call id, restoring the enclosing one after."""
    call_id = uuid.uuid4().hex[:12]
    token = bind_call_id(call_id)
    try:
        yield call_id
    finally:
        reset_call_id(token)


class QueryDispatcher:
    """Executes calls against the API using shared limiters and signer.

    The dispatcher owns nothing but the reference to the HTTP client; the
    facade that builds it decides when everything is released.
    """

    def __init__(
        self,
        *,
        http_client: httpx.AsyncClient,
        signer: RequestSigner,
        get_nonce: NonceGetter,
        public_rate_limiter: AbstractRateLimiter,
        private_rate_limiter: AbstractRateLimiter,
    ) -> None:
        self._http = http_client
        self._signer = signer
        self._get_nonce = get_nonce
        self._public_rate_limiter = public_rate_limiter
        self._private_rate_limiter = private_rate_limiter
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise ClientClosedAppError(
                code="kraken_client_closed",
                message="The client was closed and cannot issue further calls",
            )

    async def query_public(
        self,
        path: str,
        args: Mapping[str, str | None] | None = None,
        *,
        cost: int = 1,
        result_type: type[T] | Any = Any,
    ) -> KrakenResponse[T]:
        """Send a public call.

        Args:
            path: Relative URL, e.g. ``/0/public/Time``.
            args: Form arguments; ``None`` values are dropped.
            cost: Budget units consumed on the public limiter.
            result_type: Type the ``result`` payload is validated against.

        Returns:
            The decoded envelope, including any exchange-reported errors.

        Raises:
            UsageAppError: If path is None.
            ClientClosedAppError: If the client was closed, including while
                the call waited for admission.
            TransportAppError: On network failure, non-2xx status or bad body.
        """
        path = _validate_path(path)
        _validate_cost(cost)
        self._ensure_open()

        with _call_scope():
            body = url_encode(args or {})
            await self._public_rate_limiter.admit(cost)
            self._ensure_open()
            return await self._send(path, body, {}, result_type, private=False)

    async def query_private(
        self,
        path: str,
        args: Mapping[str, str | None] | None = None,
        *,
        cost: int = 1,
        otp: str | None = None,
        result_type: type[T] | Any = Any,
    ) -> KrakenResponse[T]:
        """Send a signed private call.

        The nonce is minted only after admission so that calls which waited
        on the limiter do not carry a nonce older than ones sent meanwhile.

        Args:
            path: Relative URL, e.g. ``/0/private/Balance``.
            args: Form arguments; ``None`` values are dropped. Not mutated.
            cost: Budget units consumed on the private limiter.
            otp: Two-factor password, sent as the ``otp`` field when set.
            result_type: Type the ``result`` payload is validated against.

        Returns:
            The decoded envelope, including any exchange-reported errors.

        Raises:
            UsageAppError: If path is None.
            ClientClosedAppError: If the client was closed, including while
                the call waited for admission.
            TransportAppError: On network failure, non-2xx status or bad body.
        """
        path = _validate_path(path)
        _validate_cost(cost)
        self._ensure_open()

        with _call_scope():
            await self._private_rate_limiter.admit(cost)
            self._ensure_open()

            nonce = str(self._get_nonce())
            form: dict[str, str | None] = dict(args or {})
            form["nonce"] = nonce
            if otp is not None:
                form["otp"] = otp

            body = url_encode(form)
            headers = self._signer.headers(path, body, nonce)
            return await self._send(path, body, headers, result_type, private=True)

    async def _send(
        self,
        path: str,
        body: str,
        headers: dict[str, str],
        result_type: type[T] | Any,
        *,
        private: bool,
    ) -> KrakenResponse[T]:
        start = time.perf_counter()
        logger.debug(
            "kraken.query.started",
            extra={"path": path, "private": private, "body_length": len(body)},
        )
        try:
            response = await self._http.post(
                path,
                content=body.encode("utf-8"),
                headers={"Content-Type": FORM_CONTENT_TYPE, **headers},
            )
        except httpx.HTTPError as exc:
            logger.error(
                "kraken.query.failed",
                extra={"path": path, "private": private, "error_type": type(exc).__name__},
            )
            raise TransportAppError(
                code="kraken_network_error",
                message=f"HTTP request to {path} failed: {exc}",
                details={"method": "POST", "path": path},
            ) from exc

        envelope = self._decode(path, response, result_type)
        fields: dict[str, Any] = {
            "path": path,
            "private": private,
            "http_status": response.status_code,
            "duration_ms": round((time.perf_counter() - start) * 1000, 2),
        }
        if envelope.errors:
            logger.warning("kraken.query.completed", extra={**fields, "api_errors": envelope.errors})
        else:
            logger.info("kraken.query.completed", extra=fields)
        return envelope

    def _decode(
        self,
        path: str,
        response: httpx.Response,
        result_type: type[T] | Any,
    ) -> KrakenResponse[T]:
        if not response.is_success:
            logger.error(
                "kraken.query.failed",
                extra={"path": path, "http_status": response.status_code},
            )
            raise TransportAppError(
                code="kraken_http_error",
                message=f"HTTP request failed with status {response.status_code}",
                details={
                    "http_status": response.status_code,
                    "method": response.request.method,
                    "url": str(response.request.url),
                    "response_body": response.text[:_MAX_ERROR_BODY_CHARS],
                },
            )

        try:
            return KrakenResponse[result_type].model_validate_json(response.content)
        except ValidationError as exc:
            logger.error(
                "kraken.query.failed",
                extra={
                    "path": path,
                    "http_status": response.status_code,
                    "error_type": "invalid_response",
                },
            )
            raise TransportAppError(
                code="kraken_invalid_response",
                message=f"Response from {path} is not a valid envelope",
                details={
                    "http_status": response.status_code,
                    "url": str(response.request.url),
                    "response_body": response.text[:_MAX_ERROR_BODY_CHARS],
                },
            ) from exc

    def close(self) -> None:
        self._closed = True
