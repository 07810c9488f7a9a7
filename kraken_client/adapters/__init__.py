"""Adapters shared by the client: rate limiting."""
