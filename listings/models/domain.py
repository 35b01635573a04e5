"""Domain DTOs for the listing pipeline."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class Money(BaseModel):
    value: Optional[str] = None
    currency_id: Optional[str] = None


class ListingSummary(BaseModel):
    """A search result row from the Finding API."""

    item_id: Optional[str] = Field(None, description="eBay item id")
    title: str = ""
    gallery_url: Optional[str] = None
    picture_urls: List[str] = Field(default_factory=list)
    current_price: Optional[Money] = None
    converted_current_price: Optional[Money] = None
    condition_display_name: Optional[str] = None
    view_item_url: Optional[str] = None


class NameValue(BaseModel):
    name: str = ""
    values: List[str] = Field(default_factory=list)


class PictureDetails(BaseModel):
    gallery_url: Optional[str] = None
    picture_urls: List[str] = Field(default_factory=list)


class ReturnPolicy(BaseModel):
    returns_accepted: Optional[str] = None
    returns_within: Optional[str] = None
    shipping_cost_paid_by: Optional[str] = None
    refund: Optional[str] = None


class ListingDetail(BaseModel):
    """The ``Item`` record of a Shopping API ``GetSingleItem`` response."""

    item_id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    picture_urls: List[str] = Field(default_factory=list)
    gallery_url: Optional[str] = None
    picture_details: Optional[PictureDetails] = None
    variation_picture_sets: List[List[str]] = Field(default_factory=list)
    item_specifics: List[NameValue] = Field(default_factory=list)
    return_policy: Optional[ReturnPolicy] = None
    quantity: Optional[str] = None


class EnrichedListing(BaseModel):
    """Summary plus detail plus the final image list handed to the mapper.

    ``detail`` is ``None`` when enrichment fell back to summary data only.
    """

    summary: ListingSummary
    detail: Optional[ListingDetail] = None
    images: List[str] = Field(default_factory=list)

    @property
    def title(self) -> str:
        return self.summary.title or (self.detail.title if self.detail and self.detail.title else "")

    @property
    def description(self) -> Optional[str]:
        return self.detail.description if self.detail else None

    @property
    def item_specifics(self) -> List[NameValue]:
        return self.detail.item_specifics if self.detail else []

    @property
    def return_policy(self) -> Optional[ReturnPolicy]:
        return self.detail.return_policy if self.detail else None

    @property
    def quantity(self) -> Optional[str]:
        return self.detail.quantity if self.detail else None

    @property
    def condition(self) -> str:
        return self.summary.condition_display_name or ""
