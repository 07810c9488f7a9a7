"""Request signing for private API calls.

The exchange authenticates a private call with two headers:

- ``API-Key``: the account's API key, verbatim.
- ``API-Sign``: base64 of
  ``HMAC-SHA512(secret, path ++ SHA256(nonce ++ encoded_body))``.

The encoded body passed here must be the exact string that is sent; it
already contains the ``nonce`` form field.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac

from kraken_client.core.errors import ClientClosedAppError, ConfigurationAppError

API_KEY_HEADER = "API-Key"
API_SIGN_HEADER = "API-Sign"


def compute_signature(path: str, encoded_body: str, nonce: str, secret: bytes) -> bytes:
    """Compute the raw HMAC-SHA512 signature of a private request.

    Args:
        path: Request path as sent (e.g. ``/0/private/Balance``).
        encoded_body: Form-encoded body, including the nonce field.
        nonce: Decimal nonce string, identical to the body's nonce field.
        secret: Decoded private key bytes.

    Returns:
        The 64-byte signature.
    """

    digest = hashlib.sha256((nonce + encoded_body).encode("utf-8")).digest()
    return hmac.new(secret, path.encode("utf-8") + digest, hashlib.sha512).digest()


def decode_private_key(private_key: str) -> bytes:
    """Decode a base64 private key, failing with a configuration error.

    Raises:
        ConfigurationAppError: If the key is empty or not valid base64.
    """

    if not private_key or not private_key.strip():
        raise ConfigurationAppError(
            code="kraken_missing_private_key",
            message="A private key is required to sign private calls",
            details={"field": "private_key"},
        )
    try:
        secret = base64.b64decode(private_key.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationAppError(
            code="kraken_invalid_private_key",
            message="Private key is not valid base64",
            details={"field": "private_key", "hint": "Use the secret exactly as issued by the exchange"},
        ) from exc
    if not secret:
        raise ConfigurationAppError(
            code="kraken_invalid_private_key",
            message="Private key decodes to an empty secret",
            details={"field": "private_key"},
        )
    return secret


class RequestSigner:
    """Derives authentication headers for private calls.

    The secret is decoded once, at construction, so a malformed key fails
    before any request is attempted.
    """

    __slots__ = ("_api_key", "_secret")

    def __init__(self, api_key: str, private_key: str) -> None:
        if not api_key or not api_key.strip():
            raise ConfigurationAppError(
                code="kraken_missing_api_key",
                message="An API key is required",
                details={"field": "api_key"},
            )
        self._api_key = api_key
        self._secret: bytes | None = decode_private_key(private_key)

    def __repr__(self) -> str:
        state = "closed" if self._secret is None else "open"
        return f"RequestSigner(api_key_length={len(self._api_key)}, state={state})"

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def closed(self) -> bool:
        return self._secret is None

    def sign(self, path: str, encoded_body: str, nonce: str) -> str:
        """Return the base64 ``API-Sign`` value for a request."""

        if self._secret is None:
            raise ClientClosedAppError(
                code="kraken_signer_closed",
                message="Cannot sign a request after the client was closed",
            )
        signature = compute_signature(path, encoded_body, nonce, self._secret)
        return base64.b64encode(signature).decode("ascii")

    def headers(self, path: str, encoded_body: str, nonce: str) -> dict[str, str]:
        """Build the ``API-Key``/``API-Sign`` header pair for a request."""

        return {
            API_KEY_HEADER: self._api_key,
            API_SIGN_HEADER: self.sign(path, encoded_body, nonce),
        }

    def close(self) -> None:
        """Drop the key material. Safe to call more than once."""

        self._secret = None
