"""Wix Stores client module."""

from catalog.client.wix_client import WixApiError, WixStoresClient

__all__ = [
    "WixApiError",
    "WixStoresClient",
]
