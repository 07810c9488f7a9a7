"""Form-body encoding that matches the exchange's wire format byte for byte."""

from __future__ import annotations

from typing import Mapping


def url_encode(args: Mapping[str, str | None]) -> str:
    """Join arguments into an ``application/x-www-form-urlencoded`` body.

    Entries whose value is ``None`` are dropped. Keys and values are written
    verbatim (no percent-escaping), in mapping order, because the signature
    is computed over exactly these bytes.

    Examples:
        >>> url_encode({"a": "1", "b": None, "c": "x y"})
        'a=1&c=x y'
        >>> url_encode({})
        ''
    """

    return "&".join(f"{key}={value}" for key, value in args.items() if value is not None)
