"""Creates Wix products for enriched listings, skipping the ones that fail."""

from __future__ import annotations

from typing import Any, Dict, List, Protocol, Sequence

from catalog.mapper import SkuFactory, random_sku, to_wix_product
from catalog.models import WixProduct
from catalog.settings import WixSettings
from listings.models.domain import EnrichedListing
from listings.services.rate_limiter import MinIntervalRateLimiter
from listings.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient(Protocol):
    def create_product(self, product: WixProduct) -> Dict[str, Any]: ...
    def add_media(self, product_id: str, media_urls: List[str]) -> Dict[str, Any]: ...


def _created_id(response: Dict[str, Any]) -> str:
    product = response.get("product") or {}
    product_id = product.get("id") if isinstance(product, dict) else None
    if not product_id:
        raise ValueError("create product response has no product.id")
    return str(product_id)


class ProductPublisher:
    def __init__(
        self,
        client: ProductClient,
        settings: WixSettings,
        rate_limiter: MinIntervalRateLimiter,
        sku_factory: SkuFactory = random_sku,
    ) -> None:
        self._client = client
        self._settings = settings
        self._limiter = rate_limiter
        self._sku_factory = sku_factory

    def publish(self, listing: EnrichedListing) -> str:
        """Create one product and attach its images; returns the new product id.

        A media failure leaves the created product in place.
        """
        self._limiter.wait()
        product = to_wix_product(listing, self._settings, self._sku_factory)
        product_id = _created_id(self._client.create_product(product))
        if listing.images:
            self._client.add_media(product_id, listing.images)
        return product_id

    def publish_batch(self, listings: Sequence[EnrichedListing]) -> int:
        processed = 0
        for listing in listings:
            try:
                product_id = self.publish(listing)
            except Exception as exc:
                logger.error(
                    "publish.failed",
                    extra={"title": listing.title, "item_id": listing.summary.item_id, "error": str(exc)},
                )
                continue
            processed += 1
            logger.info(
                "publish.created",
                extra={"product_id": product_id, "processed": processed, "total": len(listings)},
            )
        logger.info("publish.batch_done", extra={"processed": processed, "total": len(listings)})
        return processed
