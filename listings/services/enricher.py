"""Merges search results with Shopping API detail and normalizes images."""

from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from listings.models.domain import EnrichedListing, ListingDetail, ListingSummary
from listings.utils.logging import get_logger

from .images import detail_images, merge_images, summary_images

logger = get_logger(__name__)


class DetailClient(Protocol):
    def get_item(self, item_id: str) -> Optional[ListingDetail]: ...


class ListingEnricher:
    """Produces exactly one EnrichedListing per input summary."""

    def __init__(self, client: DetailClient) -> None:
        self._client = client

    def enrich_batch(self, batch: Sequence[ListingSummary]) -> List[EnrichedListing]:
        return [self.enrich(summary) for summary in batch]

    def enrich(self, summary: ListingSummary) -> EnrichedListing:
        basic = summary_images(summary)
        try:
            if not summary.item_id:
                raise ValueError("listing has no itemId")
            detail = self._client.get_item(summary.item_id)
            extra = detail_images(detail) if detail is not None else []
            return EnrichedListing(summary=summary, detail=detail, images=merge_images(basic, extra))
        except Exception as exc:
            logger.warning(
                "enrich.fallback",
                extra={"item_id": summary.item_id, "title": summary.title, "error": str(exc)},
            )
            return EnrichedListing(summary=summary, detail=None, images=merge_images(basic))
