"""Response envelope shared by every API call."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from kraken_client.core.errors import ProtocolAppError

T = TypeVar("T")


class KrakenResponse(BaseModel, Generic[T]):
    """Uniform ``{"error": [...], "result": ...}`` wrapper.

    A non-empty ``errors`` list is a protocol-level failure reported by the
    exchange (e.g. ``EGeneral:Invalid arguments``). It is returned to the
    caller, who decides how to react; ``result`` is only meaningful when
    ``errors`` is empty.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    errors: list[str] = Field(
        default_factory=list,
        alias="error",
        description="Error strings reported by the exchange (empty on success).",
    )
    result: T | None = Field(
        None,
        description="Endpoint-specific payload; present only when errors is empty.",
    )

    @property
    def ok(self) -> bool:
        return not self.errors

    def unwrap(self) -> T | None:
        """Return ``result``, raising if the exchange reported errors.

        Raises:
            ProtocolAppError: If ``errors`` is non-empty.
        """
        if self.errors:
            raise ProtocolAppError(
                code="kraken_api_error",
                message="; ".join(self.errors),
                details={"errors": list(self.errors)},
            )
        return self.result
