"""Collects every listing summary of a store, page by page."""

from __future__ import annotations

import time
from typing import Callable, List, Protocol

from listings.models.domain import ListingSummary
from listings.utils.logging import get_logger

from .rate_limiter import MinIntervalRateLimiter

logger = get_logger(__name__)


class FindingClient(Protocol):
    def find_page(self, store_name: str, page_size: int, page: int) -> List[ListingSummary]: ...


class ListingFetcher:
    def __init__(
        self,
        client: FindingClient,
        rate_limiter: MinIntervalRateLimiter,
        *,
        max_pages: int,
        page_retry_delay_seconds: float,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._client = client
        self._limiter = rate_limiter
        self._max_pages = max_pages
        self._retry_delay = page_retry_delay_seconds
        self._sleep = sleep

    def fetch_all(self, store_name: str, page_size: int) -> List[ListingSummary]:
        """Concatenate pages until the cap, a short page or an empty page.

        A failing page is logged and skipped after a short pause.
        """
        items: List[ListingSummary] = []
        for page in range(1, self._max_pages + 1):
            self._limiter.wait()
            try:
                page_items = self._client.find_page(store_name, page_size, page)
            except Exception as exc:
                logger.error(
                    "fetch.page_failed",
                    extra={"store": store_name, "page": page, "error": str(exc)},
                )
                self._sleep(self._retry_delay)
                continue

            if not page_items:
                logger.info("fetch.no_more_items", extra={"store": store_name, "page": page})
                break
            items.extend(page_items)
            logger.info("fetch.page", extra={"store": store_name, "page": page, "count": len(page_items)})
            if len(page_items) < page_size:
                logger.info("fetch.end_of_results", extra={"store": store_name, "page": page})
                break
        return items
