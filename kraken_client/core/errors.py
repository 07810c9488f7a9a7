"""Client-level exception types.

This module defines the error taxonomy shared by the signer, the dispatcher
and the client facade, so callers can branch on a stable ``code`` instead of
parsing messages.

Taxonomy:
- ConfigurationAppError: bad credentials, secret encoding or base URL.
- TransportAppError: non-success HTTP status, network failure, bad body.
- ProtocolAppError: the exchange answered with a non-empty ``error`` list.
- UsageAppError: programming errors such as use after disposal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and callers.

    Fields are optional; each error kind fills the ones it knows about.
    """

    hint: str
    http_status: int
    method: str
    url: str
    path: str
    response_body: str
    errors: list[str]
    field: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for client failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ConfigurationAppError(AppError):
    """Raised at construction when credentials or settings are invalid."""


class TransportAppError(AppError):
    """Raised when a single call fails at the HTTP level."""

    @property
    def http_status(self) -> int | None:
        return (self.details or {}).get("http_status")


class ProtocolAppError(AppError):
    """Raised on request when an envelope carrying errors is unwrapped."""

    @property
    def errors(self) -> list[str]:
        return list((self.details or {}).get("errors", []))


class UsageAppError(AppError):
    """Raised when the client is used incorrectly (programming error)."""


class ClientClosedAppError(UsageAppError):
    """Raised when a disposed client (or its signer) is used."""
