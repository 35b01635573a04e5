"""EnrichedListing -> WixProduct transform (pure, no I/O)."""

from __future__ import annotations

import math
import re
import uuid
from typing import Callable, List, Optional

from catalog.models import InfoSection, Inventory, PriceData, SeoData, SeoTag, WixProduct
from catalog.settings import WixSettings
from listings.models.domain import EnrichedListing, NameValue, ReturnPolicy

BRAND_SPECIFIC_NAME = "Brand"

SkuFactory = Callable[[], str]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def random_sku() -> str:
    # Not derived from the eBay item id: every run creates a new product.
    return uuid.uuid4().hex[:8]


def _parse_price(value: Optional[str]) -> float:
    if not value:
        return 0.0
    try:
        price = float(value)
    except ValueError:
        return 0.0
    # nan/inf would make the payload invalid JSON
    return price if math.isfinite(price) else 0.0


def _parse_quantity(value: Optional[str]) -> int:
    match = _LEADING_INT.match(value or "")
    return int(match.group(1)) if match else 1


def extract_brand(specifics: List[NameValue]) -> str:
    for specific in specifics:
        if specific.name == BRAND_SPECIFIC_NAME:
            return specific.values[0] if specific.values else ""
    return ""


def format_item_specifics(specifics: List[NameValue]) -> str:
    return "\n\n".join(f"**{specific.name}:** {', '.join(specific.values)}" for specific in specifics)


def format_return_policy(policy: Optional[ReturnPolicy]) -> str:
    if policy is None:
        return ""
    lines = []
    if policy.returns_accepted:
        lines.append(f"Returns: {policy.returns_accepted}")
    if policy.returns_within:
        lines.append(f"Return Window: {policy.returns_within}")
    if policy.shipping_cost_paid_by:
        lines.append(f"Return Shipping: Paid by {policy.shipping_cost_paid_by}")
    if policy.refund:
        lines.append(f"Refund Type: {policy.refund}")
    return "\n".join(lines)


def clean_description(description: Optional[str]) -> str:
    """Drop eBay reference numbers, HTML comments and tags; keep line breaks."""
    if not description:
        return ""
    text = re.sub(r"\b\d{3,}-\d{4,}\b", "", description)
    text = re.sub(r"<!--[\s\S]*?-->", "", text)
    text = re.sub(r"<br\s*/?>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def meta_description(listing: EnrichedListing, max_length: int) -> str:
    brand = extract_brand(listing.item_specifics)
    return f"{listing.condition} {brand} {listing.title}".strip()[:max_length]


def to_wix_product(
    listing: EnrichedListing,
    settings: WixSettings,
    sku_factory: SkuFactory = random_sku,
) -> WixProduct:
    summary = listing.summary
    current = summary.current_price
    converted = summary.converted_current_price
    raw_price = (current.value if current else None) or (converted.value if converted else None)
    currency = (current.currency_id if current else None) or settings.default_currency

    description = listing.description
    if description and settings.clean_description:
        description = clean_description(description)
    if description is not None:
        description = description[: settings.description_max_length]

    return WixProduct(
        name=listing.title,
        price_data=PriceData(currency=currency, price=_parse_price(raw_price)),
        description=description,
        sku=sku_factory(),
        ribbon=listing.condition,
        inventory=Inventory(status="IN_STOCK", quantity=_parse_quantity(listing.quantity), track_quantity=True),
        additional_info_sections=[
            InfoSection(title="Product Details", description=format_item_specifics(listing.item_specifics)),
            InfoSection(title="Return Policy", description=format_return_policy(listing.return_policy)),
        ],
        brand=extract_brand(listing.item_specifics) or settings.brand_placeholder,
        seo_data=SeoData(
            tags=[
                SeoTag(type="title", children=listing.title),
                SeoTag(
                    type="meta",
                    props={
                        "name": "description",
                        "content": meta_description(listing, settings.meta_description_max_length),
                    },
                ),
            ]
        ),
    )
