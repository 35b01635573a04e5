from __future__ import annotations

from typing import Dict, Optional

from listings.connectors.base import EbayApiError, TransientError
from listings.models.domain import ListingDetail, ListingSummary
from listings.services.enricher import ListingEnricher


class FakeDetails:
    def __init__(self, by_id: Dict[str, object]) -> None:
        self._by_id = by_id
        self.calls: list[str] = []

    def get_item(self, item_id: str) -> Optional[ListingDetail]:
        self.calls.append(item_id)
        result = self._by_id.get(item_id)
        if isinstance(result, Exception):
            raise result
        return result  # type: ignore[return-value]


def _summary(item_id: Optional[str], gallery: Optional[str] = None) -> ListingSummary:
    return ListingSummary(item_id=item_id, title=f"Listing {item_id}", gallery_url=gallery)


def test_merges_summary_and_detail_images():
    summary = _summary("1", gallery="https://i.ebayimg.com/thumbs/abc-thumb.jpg")
    detail = ListingDetail(item_id="1", picture_urls=["https://i.ebayimg.com/images/g/abc/s-l64.jpg"])
    enricher = ListingEnricher(FakeDetails({"1": detail}))

    [enriched] = enricher.enrich_batch([summary])

    assert enriched.detail == detail
    assert enriched.summary == summary
    assert enriched.images == [
        "https://i.ebayimg.com/abc.jpg",
        "https://i.ebayimg.com/images/g/abc/s-l1600.jpg",
    ]


def test_detail_without_item_keeps_basic_images():
    enricher = ListingEnricher(FakeDetails({"1": None}))

    [enriched] = enricher.enrich_batch([_summary("1", gallery="https://x.com/s-l64.jpg")])

    assert enriched.detail is None
    assert enriched.images == ["https://x.com/s-l1600.jpg"]


def test_never_drops_listings_when_every_detail_call_fails():
    batch = [
        _summary("1", gallery="https://x.com/thumbs/1.jpg"),
        _summary("2"),
        _summary(None, gallery="https://x.com/3.jpg"),
    ]
    details = FakeDetails({"1": TransientError("down"), "2": EbayApiError("Failure")})

    enriched = ListingEnricher(details).enrich_batch(batch)

    assert len(enriched) == len(batch)
    assert [e.summary.item_id for e in enriched] == ["1", "2", None]
    assert all(e.detail is None for e in enriched)
    assert enriched[0].images == ["https://x.com/1.jpg"]
    assert enriched[1].images == []
    assert enriched[2].images == ["https://x.com/3.jpg"]
    # a listing without an item id never reaches the detail API
    assert details.calls == ["1", "2"]


def test_summary_and_detail_sizes_of_one_picture_yield_one_url():
    summary = _summary("1", gallery="https://i.ebayimg.com/images/g/abc/s-l140.jpg")
    detail = ListingDetail(item_id="1", picture_urls=["https://i.ebayimg.com/images/g/abc/s-l500.jpg"])

    [enriched] = ListingEnricher(FakeDetails({"1": detail})).enrich_batch([summary])

    assert enriched.images == ["https://i.ebayimg.com/images/g/abc/s-l1600.jpg"]
