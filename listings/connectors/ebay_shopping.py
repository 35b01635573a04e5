"""eBay Shopping API connector (``GetSingleItem`` over XML)."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import List, Optional
from xml.sax.saxutils import escape

import httpx

from listings.models.domain import ListingDetail, NameValue, PictureDetails, ReturnPolicy
from listings.services.rate_limiter import MinIntervalRateLimiter
from listings.settings import Settings
from listings.utils.logging import get_logger

from .base import AuthenticationError, EbayApiError, EbayErrorEntry, PermanentError, TransientError
from .ebay_auth import ApplicationTokenSession

logger = get_logger(__name__)

CALL_NAME = "GetSingleItem"
INCLUDE_SELECTOR = "Details,Description,ItemSpecifics,Variations,PictureURLs"
INVALID_TOKEN_MARKERS = ("Invalid token", "Token not available")
TOKEN_ERROR_CODES = frozenset({"1.32", "1.33"})

_REQUEST_TEMPLATE = """<?xml version="1.0" encoding="utf-8"?>
<GetSingleItemRequest xmlns="urn:ebay:apis:eBLBaseComponents">
  <ItemID>{item_id}</ItemID>
  <IncludeSelector>{selector}</IncludeSelector>
</GetSingleItemRequest>"""


def build_request_body(item_id: str) -> str:
    return _REQUEST_TEMPLATE.format(item_id=escape(item_id), selector=INCLUDE_SELECTOR)


def _strip_namespaces(root: ET.Element) -> ET.Element:
    for el in root.iter():
        if isinstance(el.tag, str) and "}" in el.tag:
            el.tag = el.tag.split("}", 1)[1]
    return root


def _text(node: Optional[ET.Element], path: str) -> Optional[str]:
    if node is None:
        return None
    found = node.find(path)
    if found is None or found.text is None:
        return None
    value = found.text.strip()
    return value or None


def _texts(node: Optional[ET.Element], path: str) -> List[str]:
    if node is None:
        return []
    return [el.text.strip() for el in node.findall(path) if el.text and el.text.strip()]


def parse_item(item: ET.Element) -> ListingDetail:
    picture_details = None
    pd_node = item.find("PictureDetails")
    if pd_node is not None:
        picture_details = PictureDetails(
            gallery_url=_text(pd_node, "GalleryURL"),
            picture_urls=_texts(pd_node, "PictureURL"),
        )

    variation_sets = [
        _texts(picture_set, "PictureURL")
        for picture_set in item.findall("Variations/Pictures/VariationSpecificPictureSet")
    ]

    specifics = [
        NameValue(name=_text(nv, "Name") or "", values=_texts(nv, "Value"))
        for nv in item.findall("ItemSpecifics/NameValueList")
    ]

    return_policy = None
    rp_node = item.find("ReturnPolicy")
    if rp_node is not None:
        return_policy = ReturnPolicy(
            returns_accepted=_text(rp_node, "ReturnsAccepted"),
            returns_within=_text(rp_node, "ReturnsWithin"),
            shipping_cost_paid_by=_text(rp_node, "ShippingCostPaidBy"),
            refund=_text(rp_node, "Refund"),
        )

    return ListingDetail(
        item_id=_text(item, "ItemID"),
        title=_text(item, "Title"),
        description=_text(item, "Description"),
        picture_urls=_texts(item, "PictureURL"),
        gallery_url=_text(item, "GalleryURL"),
        picture_details=picture_details,
        variation_picture_sets=[s for s in variation_sets if s],
        item_specifics=specifics,
        return_policy=return_policy,
        quantity=_text(item, "Quantity"),
    )


def parse_errors(root: ET.Element) -> List[EbayErrorEntry]:
    return [
        EbayErrorEntry(
            short_message=_text(err, "ShortMessage") or "",
            long_message=_text(err, "LongMessage") or "",
            error_code=_text(err, "ErrorCode") or "",
            severity=_text(err, "SeverityCode") or "",
        )
        for err in root.findall("Errors")
    ]


def parse_response(xml_text: str) -> ET.Element:
    try:
        return _strip_namespaces(ET.fromstring(xml_text))
    except ET.ParseError as exc:
        raise PermanentError("Shopping API returned malformed XML") from exc


class EbayShoppingClient:
    """Fetches full item detail with the shared application token."""

    def __init__(
        self,
        settings: Settings,
        session: ApplicationTokenSession,
        rate_limiter: MinIntervalRateLimiter,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._settings = settings
        self._session = session
        self._limiter = rate_limiter
        self._client = client

    def _headers(self, token: str) -> dict[str, str]:
        cfg = self._settings
        return {
            "X-EBAY-API-VERSION": cfg.ebay_shopping_api_version,
            "X-EBAY-API-SITE-ID": cfg.ebay_site_id,
            "X-EBAY-API-REQUEST-ENCODING": "XML",
            "X-EBAY-API-CALL-NAME": CALL_NAME,
            "X-EBAY-API-IAF-TOKEN": token,
            "X-EBAY-API-APP-ID": cfg.ebay_app_id,
            "Content-Type": "text/xml",
            "Authorization": f"Bearer {token}",
        }

    def get_item(self, item_id: str) -> Optional[ListingDetail]:
        """Return the item detail, or ``None`` when the response carries no item.

        An invalid-token response triggers one refresh and exactly one retry.
        """
        token = self._session.get_token()
        try:
            return self._get_item_once(item_id, token)
        except AuthenticationError as exc:
            logger.warning("shopping.auth_retry", extra={"item_id": item_id, "error": str(exc)})
            fresh = self._session.refresh(stale=token)
            return self._get_item_once(item_id, fresh)

    def _get_item_once(self, item_id: str, token: str) -> Optional[ListingDetail]:
        cfg = self._settings
        self._limiter.wait()
        body = build_request_body(item_id)
        try:
            if self._client is not None:
                resp = self._client.post(cfg.ebay_shopping_endpoint, content=body, headers=self._headers(token))
            else:
                resp = httpx.post(
                    cfg.ebay_shopping_endpoint,
                    content=body,
                    headers=self._headers(token),
                    timeout=float(cfg.ebay_timeout_seconds),
                )
        except httpx.TimeoutException as exc:
            raise TransientError("Shopping API timeout") from exc
        except httpx.HTTPError as exc:
            raise TransientError("Shopping API call failed") from exc

        if resp.status_code >= 400:
            text = resp.text or ""
            logger.error(
                "shopping.http_error",
                extra={"item_id": item_id, "status": resp.status_code, "body": text[:1000]},
            )
            if any(marker in text for marker in INVALID_TOKEN_MARKERS):
                raise AuthenticationError(f"Shopping API rejected token: {resp.status_code}")
            if resp.status_code == 429 or resp.status_code >= 500:
                raise TransientError(f"Shopping API temporary error: {resp.status_code}")
            raise PermanentError(f"Shopping API error: {resp.status_code}")

        root = parse_response(resp.text)
        if _text(root, "Ack") == "Failure":
            errors = parse_errors(root)
            self._handle_failure(item_id, token, errors)
            raise EbayApiError("eBay API request failed", errors)

        item = root.find("Item")
        if item is None:
            return None
        return parse_item(item)

    def _handle_failure(self, item_id: str, token: str, errors: List[EbayErrorEntry]) -> None:
        needs_refresh = False
        for err in errors:
            logger.error(
                "shopping.api_error",
                extra={
                    "item_id": item_id,
                    "short_message": err.short_message,
                    "long_message": err.long_message,
                    "error_code": err.error_code,
                },
            )
            if err.error_code in TOKEN_ERROR_CODES:
                needs_refresh = True
        if needs_refresh:
            try:
                self._session.refresh(stale=token)
            except Exception as exc:
                logger.warning("shopping.token_refresh_failed", extra={"item_id": item_id, "error": str(exc)})
