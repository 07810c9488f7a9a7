"""Services orchestrating API calls."""

from kraken_client.services.query_dispatcher import QueryDispatcher

__all__ = ["QueryDispatcher"]
