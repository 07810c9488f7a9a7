"""Unit tests for form-body encoding."""

from kraken_client.core.form_encoding import url_encode


def test_drops_none_and_keeps_values_unescaped() -> None:
    assert url_encode({"a": "1", "b": None, "c": "x y"}) == "a=1&c=x y"


def test_empty_mapping_encodes_to_empty_string() -> None:
    assert url_encode({}) == ""


def test_all_none_encodes_to_empty_string() -> None:
    assert url_encode({"a": None, "b": None}) == ""


def test_preserves_mapping_order() -> None:
    assert url_encode({"pair": "XBTUSD", "nonce": "42", "asset": "ZUSD"}) == "pair=XBTUSD&nonce=42&asset=ZUSD"


def test_reserved_characters_are_not_escaped() -> None:
    assert url_encode({"pair": "XBT/USD,ETH/USD", "empty": ""}) == "pair=XBT/USD,ETH/USD&empty="
