"""Process-wide collaborators shared by every sync run in a worker process."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx

from catalog.client.wix_client import WixStoresClient
from catalog.publisher import ProductPublisher
from catalog.settings import WixSettings, get_wix_settings

from .connectors.ebay_auth import ApplicationTokenSession, EbayTokenClient, TokenRefresher
from .connectors.ebay_finding import EbayFindingClient
from .connectors.ebay_shopping import EbayShoppingClient
from .services.enricher import ListingEnricher
from .services.fetcher import ListingFetcher
from .services.pipeline import SyncPipeline
from .services.rate_limiter import MinIntervalRateLimiter
from .settings import Settings, get_settings
from .utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class SyncContext:
    settings: Settings
    wix_settings: WixSettings
    http: httpx.Client
    rate_limiter: MinIntervalRateLimiter
    token_session: ApplicationTokenSession
    refresher: TokenRefresher
    sleep: Callable[[float], None] = field(default=time.sleep)

    def build_fetcher(self) -> ListingFetcher:
        cfg = self.settings
        return ListingFetcher(
            EbayFindingClient(cfg, client=self.http),
            self.rate_limiter,
            max_pages=cfg.ebay_max_pages,
            page_retry_delay_seconds=cfg.page_retry_delay_seconds,
            sleep=self.sleep,
        )

    def build_enricher(self) -> ListingEnricher:
        return ListingEnricher(
            EbayShoppingClient(self.settings, self.token_session, self.rate_limiter, client=self.http),
        )

    def build_publisher(self) -> ProductPublisher:
        client = WixStoresClient(self.wix_settings, client=self.http)
        return ProductPublisher(client, self.wix_settings, self.rate_limiter)

    def build_pipeline(self) -> SyncPipeline:
        cfg = self.settings
        return SyncPipeline(
            self.build_fetcher(),
            self.build_enricher(),
            self.build_publisher(),
            store_name=cfg.ebay_store_name,
            page_size=cfg.ebay_page_size,
            batch_size=cfg.sync_batch_size,
            batch_delay_seconds=cfg.batch_delay_seconds,
            sleep=self.sleep,
        )

    def close(self) -> None:
        self.refresher.stop()
        self.http.close()


def build_context(settings: Settings | None = None, wix_settings: WixSettings | None = None) -> SyncContext:
    cfg = settings or get_settings()
    wix_cfg = wix_settings or get_wix_settings()
    timeout = float(max(cfg.ebay_timeout_seconds, wix_cfg.wix_timeout_seconds))
    http = httpx.Client(timeout=timeout)
    session = ApplicationTokenSession(EbayTokenClient(cfg, client=http).fetch_token)
    return SyncContext(
        settings=cfg,
        wix_settings=wix_cfg,
        http=http,
        rate_limiter=MinIntervalRateLimiter(cfg.api_min_interval_ms / 1000.0),
        token_session=session,
        refresher=TokenRefresher(session, cfg.token_refresh_interval_seconds),
    )


_CONTEXT: Optional[SyncContext] = None
_CONTEXT_LOCK = threading.Lock()


def get_sync_context() -> SyncContext:
    """Return the per-process context, creating it on first use."""
    global _CONTEXT
    with _CONTEXT_LOCK:
        if _CONTEXT is None:
            _CONTEXT = build_context()
        return _CONTEXT


def start_token_refresher() -> None:
    get_sync_context().refresher.start()


def shutdown_context() -> None:
    global _CONTEXT
    with _CONTEXT_LOCK:
        ctx, _CONTEXT = _CONTEXT, None
    if ctx is not None:
        ctx.close()
        logger.info("sync.context.closed")
