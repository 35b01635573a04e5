"""One sync run: fetch all -> (enrich batch -> publish batch) per batch."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Protocol, Sequence

from listings.models.domain import EnrichedListing
from listings.utils.logging import get_logger

from .enricher import ListingEnricher
from .fetcher import ListingFetcher

logger = get_logger(__name__)


class BatchPublisher(Protocol):
    def publish_batch(self, listings: Sequence[EnrichedListing]) -> int: ...


@dataclass
class SyncReport:
    fetched: int = 0
    enriched: int = 0
    fallbacks: int = 0
    published: int = 0
    batches: int = 0
    failed: bool = False


class SyncPipeline:
    def __init__(
        self,
        fetcher: ListingFetcher,
        enricher: ListingEnricher,
        publisher: BatchPublisher,
        *,
        store_name: str,
        page_size: int,
        batch_size: int,
        batch_delay_seconds: float,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._fetcher = fetcher
        self._enricher = enricher
        self._publisher = publisher
        self._store_name = store_name
        self._page_size = page_size
        self._batch_size = batch_size
        self._batch_delay = batch_delay_seconds
        self._sleep = sleep

    def run(self) -> SyncReport:
        """Run once; never raises, a failure is logged and flagged on the report."""
        report = SyncReport()
        extra = {"store": self._store_name}
        logger.info("sync.start", extra=extra)
        try:
            listings = self._fetcher.fetch_all(self._store_name, self._page_size)
            report.fetched = len(listings)
            logger.info("sync.fetched", extra={**extra, "count": report.fetched})
            if not listings:
                logger.info("sync.no_listings", extra=extra)

            for start in range(0, len(listings), self._batch_size):
                batch = listings[start : start + self._batch_size]
                enriched = self._enricher.enrich_batch(batch)
                report.enriched += len(enriched)
                report.fallbacks += sum(1 for item in enriched if item.detail is None)
                report.published += self._publisher.publish_batch(enriched)
                report.batches += 1
                logger.info("sync.batch", extra={**extra, "batch": report.batches, "size": len(batch)})
                self._sleep(self._batch_delay)

            logger.info(
                "sync.completed",
                extra={
                    **extra,
                    "fetched": report.fetched,
                    "enriched": report.enriched,
                    "fallbacks": report.fallbacks,
                    "published": report.published,
                },
            )
        except Exception:
            report.failed = True
            logger.exception("sync.failed", extra=extra)
        return report
