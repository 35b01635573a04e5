"""Catalog module - Wix Stores client, product mapping and publishing."""

from catalog.client.wix_client import WixApiError, WixStoresClient
from catalog.mapper import to_wix_product
from catalog.publisher import ProductPublisher
from catalog.settings import WixSettings, get_wix_settings

__all__ = [
    "ProductPublisher",
    "WixApiError",
    "WixSettings",
    "WixStoresClient",
    "get_wix_settings",
    "to_wix_product",
]
