"""Unit tests for request signing."""

import base64

import pytest

from kraken_client.core.errors import ClientClosedAppError, ConfigurationAppError
from kraken_client.core.signing import (
    API_KEY_HEADER,
    API_SIGN_HEADER,
    RequestSigner,
    compute_signature,
    decode_private_key,
)

# Signing example published in the exchange's REST API documentation.
VECTOR_SECRET = "kQH5HW/8p1uGOVjbgWA7FunAmGO8lsSUXNsu3eow76sz84Q18fWxnyRzBHCd3pd5nE9qa99HAZtuZuj6F1huXg=="
VECTOR_PATH = "/0/private/AddOrder"
VECTOR_NONCE = "1616492376594"
VECTOR_BODY = "nonce=1616492376594&ordertype=limit&pair=XBTUSD&price=37500&type=buy&volume=1.25"
VECTOR_SIGNATURE = "4/dpxb3iT4tp/ZCVEwSnEsLxx0bqyhLpdfOpc6fn7OR8+UClSV5n9E6aSS8MPtnRfp32bAb0nmbRn6H8ndwLUQ=="


class TestComputeSignature:
    """The pure signature function."""

    def test_matches_known_vector(self) -> None:
        secret = base64.b64decode(VECTOR_SECRET)

        signature = compute_signature(VECTOR_PATH, VECTOR_BODY, VECTOR_NONCE, secret)

        assert base64.b64encode(signature).decode() == VECTOR_SIGNATURE

    def test_is_deterministic(self) -> None:
        secret = b"k" * 64

        first = compute_signature("/0/private/Balance", "nonce=1", "1", secret)
        second = compute_signature("/0/private/Balance", "nonce=1", "1", secret)

        assert first == second
        assert len(first) == 64  # SHA-512 digest length

    @pytest.mark.parametrize(
        ("path", "body", "nonce"),
        [
            ("/0/private/Balance", "nonce=1", "2"),
            ("/0/private/Balance", "nonce=2", "1"),
            ("/0/private/TradeBalance", "nonce=1", "1"),
        ],
    )
    def test_every_input_affects_signature(self, path: str, body: str, nonce: str) -> None:
        secret = b"k" * 64
        reference = compute_signature("/0/private/Balance", "nonce=1", "1", secret)

        assert compute_signature(path, body, nonce, secret) != reference


class TestRequestSigner:
    """Header emission and construction-time validation."""

    def test_sign_matches_known_vector(self) -> None:
        signer = RequestSigner("api-key", VECTOR_SECRET)

        assert signer.sign(VECTOR_PATH, VECTOR_BODY, VECTOR_NONCE) == VECTOR_SIGNATURE

    def test_headers_contain_key_and_signature(self) -> None:
        signer = RequestSigner("api-key", VECTOR_SECRET)

        headers = signer.headers(VECTOR_PATH, VECTOR_BODY, VECTOR_NONCE)

        assert headers == {API_KEY_HEADER: "api-key", API_SIGN_HEADER: VECTOR_SIGNATURE}

    @pytest.mark.parametrize("api_key", ["", "   ", None])
    def test_missing_api_key_fails_at_construction(self, api_key) -> None:
        with pytest.raises(ConfigurationAppError) as exc:
            RequestSigner(api_key, VECTOR_SECRET)
        assert exc.value.code == "kraken_missing_api_key"

    @pytest.mark.parametrize("private_key", ["", None])
    def test_missing_private_key_fails_at_construction(self, private_key) -> None:
        with pytest.raises(ConfigurationAppError) as exc:
            RequestSigner("api-key", private_key)
        assert exc.value.code == "kraken_missing_private_key"

    @pytest.mark.parametrize("private_key", ["not base64!!", "abc", "=="])
    def test_malformed_private_key_fails_at_construction(self, private_key: str) -> None:
        with pytest.raises(ConfigurationAppError) as exc:
            RequestSigner("api-key", private_key)
        assert exc.value.code == "kraken_invalid_private_key"

    def test_decode_private_key_returns_secret_bytes(self) -> None:
        assert decode_private_key(base64.b64encode(b"secret").decode()) == b"secret"

    def test_repr_does_not_leak_secret(self) -> None:
        signer = RequestSigner("api-key", VECTOR_SECRET)

        assert VECTOR_SECRET not in repr(signer)
        assert "api-key" not in repr(signer)

    def test_closed_signer_refuses_to_sign(self) -> None:
        signer = RequestSigner("api-key", VECTOR_SECRET)
        signer.close()
        signer.close()

        assert signer.closed is True
        with pytest.raises(ClientClosedAppError):
            signer.sign(VECTOR_PATH, VECTOR_BODY, VECTOR_NONCE)
