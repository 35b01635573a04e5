"""eBay Finding API connector (``findItemsIneBayStores``, JSON payload)."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import httpx

from listings.models.domain import ListingSummary, Money
from listings.settings import Settings

from .base import EbayApiError, EbayErrorEntry, PermanentError, TransientError, as_list, first

OPERATION = "findItemsIneBayStores"

# (store_name, page_size, page_number) -> raw JSON response
ProviderFn = Callable[[str, int, int], Dict[str, Any]]


def _money(raw: Any) -> Optional[Money]:
    node = first(raw)
    if not isinstance(node, dict):
        return None
    value = node.get("__value__", node.get("value"))
    currency = node.get("@currencyId", node.get("currencyId"))
    return Money(
        value=str(value) if value is not None else None,
        currency_id=str(currency) if currency else None,
    )


def parse_item(raw: Dict[str, Any]) -> ListingSummary:
    """Map one Finding ``item`` node to a ListingSummary; every field is optional."""
    selling = first(raw.get("sellingStatus")) or {}
    condition = first(raw.get("condition")) or {}
    pictures = [
        str(url)
        for key in ("pictureURLSuperSize", "pictureURLLarge", "pictureURL")
        for url in as_list(raw.get(key))
        if url
    ]
    item_id = first(raw.get("itemId"))
    return ListingSummary(
        item_id=str(item_id) if item_id else None,
        title=str(first(raw.get("title")) or ""),
        gallery_url=first(raw.get("galleryURL")) or None,
        picture_urls=pictures,
        current_price=_money(selling.get("currentPrice")) if isinstance(selling, dict) else None,
        converted_current_price=(
            _money(selling.get("convertedCurrentPrice")) if isinstance(selling, dict) else None
        ),
        condition_display_name=(
            first(condition.get("conditionDisplayName")) if isinstance(condition, dict) else None
        ),
        view_item_url=first(raw.get("viewItemURL")) or None,
    )


def parse_search_response(data: Dict[str, Any]) -> List[ListingSummary]:
    """Return the page's items, ``[]`` when the result set is absent.

    Raises EbayApiError when the envelope reports ``ack=Failure``.
    """
    envelope = first(data.get(f"{OPERATION}Response")) or {}
    if not isinstance(envelope, dict):
        return []
    if first(envelope.get("ack")) == "Failure":
        message_block = first(envelope.get("errorMessage")) or {}
        errors = [
            EbayErrorEntry(
                short_message=str(first(err.get("message")) or ""),
                error_code=str(first(err.get("errorId")) or ""),
                severity=str(first(err.get("severity")) or ""),
            )
            for err in as_list(message_block.get("error") if isinstance(message_block, dict) else None)
            if isinstance(err, dict)
        ]
        raise EbayApiError("Finding API request failed", errors)
    result = first(envelope.get("searchResult")) or {}
    if not isinstance(result, dict):
        return []
    return [parse_item(item) for item in as_list(result.get("item")) if isinstance(item, dict)]


class EbayFindingClient:
    """Pages through a store's listings.

    - with ``provider``: offline mode, the provider returns the raw JSON
    - without: real HTTP call against the Finding endpoint
    """

    def __init__(
        self,
        settings: Settings,
        client: Optional[httpx.Client] = None,
        provider: Optional[ProviderFn] = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._provider = provider

    def _params(self, store_name: str, page_size: int, page: int) -> Dict[str, Any]:
        cfg = self._settings
        return {
            "OPERATION-NAME": OPERATION,
            "SERVICE-VERSION": cfg.ebay_finding_service_version,
            "SECURITY-APPNAME": cfg.ebay_app_id,
            "RESPONSE-DATA-FORMAT": "JSON",
            "REST-PAYLOAD": "",
            "storeName": store_name,
            "paginationInput.entriesPerPage": page_size,
            "paginationInput.pageNumber": page,
            "outputSelector(0)": "PictureURLSuperSize",
            "outputSelector(1)": "PictureURLLarge",
        }

    def _fetch_raw(self, store_name: str, page_size: int, page: int) -> Dict[str, Any]:
        if self._provider is not None:
            return self._provider(store_name, page_size, page)

        cfg = self._settings
        params = self._params(store_name, page_size, page)
        try:
            if self._client is not None:
                resp = self._client.get(cfg.ebay_finding_endpoint, params=params)
            else:
                resp = httpx.get(cfg.ebay_finding_endpoint, params=params, timeout=float(cfg.ebay_timeout_seconds))
        except httpx.TimeoutException as exc:
            raise TransientError("Finding API timeout") from exc
        except httpx.HTTPError as exc:
            raise TransientError("Finding API call failed") from exc

        if resp.status_code == 429 or resp.status_code >= 500:
            raise TransientError(f"Finding API temporary error: {resp.status_code}")
        if resp.status_code >= 400:
            raise PermanentError(f"Finding API error: {resp.status_code}")
        return resp.json()

    def find_page(self, store_name: str, page_size: int, page: int) -> List[ListingSummary]:
        return parse_search_response(self._fetch_raw(store_name, page_size, page))
