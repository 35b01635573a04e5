"""Wix Stores REST client (create product, attach media)."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx

from catalog.models import WixProduct
from catalog.settings import WixSettings
from listings.utils.logging import get_logger

logger = get_logger(__name__)


class WixApiError(Exception):
    """A Wix Stores call failed (transport error or non-2xx status)."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class WixStoresClient:
    def __init__(self, settings: WixSettings, client: Optional[httpx.Client] = None) -> None:
        self._settings = settings
        self._client = client

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": self._settings.wix_auth_token.get_secret_value(),
            "wix-site-id": self._settings.wix_site_id,
        }

    def _post(self, path: str, payload: Dict[str, Any], *, event: str) -> Dict[str, Any]:
        url = f"{self._settings.wix_api_base}{path}"
        try:
            if self._client is not None:
                resp = self._client.post(url, json=payload, headers=self._headers())
            else:
                resp = httpx.post(
                    url,
                    json=payload,
                    headers=self._headers(),
                    timeout=float(self._settings.wix_timeout_seconds),
                )
        except httpx.HTTPError as exc:
            logger.error(f"{event}.transport_error", extra={"url": url, "error": str(exc)})
            raise WixApiError(f"Wix request failed: {exc}") from exc

        if resp.status_code >= 400:
            try:
                body: Any = resp.json()
            except ValueError:
                body = resp.text[:2000]
            logger.error(f"{event}.http_error", extra={"url": url, "status": resp.status_code, "body": body})
            raise WixApiError(f"Wix API error: {resp.status_code}", status_code=resp.status_code, body=body)
        return resp.json() if resp.content else {}

    def create_product(self, product: WixProduct) -> Dict[str, Any]:
        """POST /products; returns the response containing ``product.id``."""
        return self._post("/products", {"product": product.to_payload()}, event="wix.create_product")

    def add_media(self, product_id: str, media_urls: List[str]) -> Dict[str, Any]:
        media = [{"url": url} for url in media_urls]
        return self._post(f"/products/{product_id}/media", {"media": media}, event="wix.add_media")
