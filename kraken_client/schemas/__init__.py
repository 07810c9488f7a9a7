"""Pydantic schemas for API responses."""

from kraken_client.schemas.envelope import KrakenResponse

__all__ = ["KrakenResponse"]
