"""Wix Stores product payload."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _WixModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PriceData(_WixModel):
    currency: str
    price: float


class Inventory(_WixModel):
    status: str = "IN_STOCK"
    quantity: int = 1
    track_quantity: bool = Field(True, alias="trackQuantity")


class InfoSection(_WixModel):
    title: str
    description: str = ""


class SeoTag(_WixModel):
    type: str
    children: Optional[str] = None
    props: Optional[Dict[str, str]] = None


class SeoData(_WixModel):
    tags: List[SeoTag] = Field(default_factory=list)


class WixProduct(_WixModel):
    name: str
    product_type: str = Field("physical", alias="productType")
    price_data: PriceData = Field(..., alias="priceData")
    description: Optional[str] = None
    sku: str
    visible: bool = True
    weight: float = 0
    ribbon: str = ""
    inventory: Inventory = Field(default_factory=Inventory)
    additional_info_sections: List[InfoSection] = Field(default_factory=list, alias="additionalInfoSections")
    brand: str
    seo_data: SeoData = Field(default_factory=SeoData, alias="seoData")

    def to_payload(self) -> Dict[str, Any]:
        """Request body fields in Wix's camelCase shape."""
        return self.model_dump(by_alias=True, exclude_none=True)
