"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It selects the testing environment, so a developer's local
.env.development never leaks credentials into tests that resolve settings.
"""

import os

# load_settings() picks .env.testing from here on
os.environ["KRAKEN_ENV"] = "testing"

# Known-good credentials; the private key is the exchange's documented
# signing example secret.
os.environ.setdefault("KRAKEN_API_KEY", "test-api-key-123")
os.environ.setdefault(
    "KRAKEN_PRIVATE_KEY",
    "kQH5HW/8p1uGOVjbgWA7FunAmGO8lsSUXNsu3eow76sz84Q18fWxnyRzBHCd3pd5nE9qa99HAZtuZuj6F1huXg==",
)
os.environ.setdefault("KRAKEN_ACCOUNT_TIER", "none")
