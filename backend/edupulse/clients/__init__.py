"""Clients for the remote spreadsheet store."""

from .store import StoreClient, StoreError

__all__ = [
    "StoreClient",
    "StoreError",
]
