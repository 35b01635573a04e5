"""Run one eBay -> Wix sync outside of Celery.

Usage:
  uv run -- python scripts/run_sync_once.py
  uv run -- python scripts/run_sync_once.py --dry-run -n 3

Reads configuration from .env via pydantic settings. Requires EBAY_STORE_NAME,
EBAY_APP_ID and the OAuth credentials; WIX_AUTH_TOKEN/WIX_SITE_ID are needed
for a real run. --dry-run fetches, enriches and maps without creating products.
"""

from __future__ import annotations

import argparse
import json
from typing import List

from catalog.mapper import to_wix_product
from listings.context import build_context
from listings.settings import get_settings
from listings.tasks.sync import sync_core
from listings.utils.logging import configure_logging


def _dry_run(top: int) -> int:
    ctx = build_context()
    try:
        cfg = ctx.settings
        listings = ctx.build_fetcher().fetch_all(cfg.ebay_store_name, cfg.ebay_page_size)
        print(f"Fetched {len(listings)} listings from {cfg.ebay_store_name}.")
        enriched = ctx.build_enricher().enrich_batch(listings[:top])
        for idx, item in enumerate(enriched, start=1):
            product = to_wix_product(item, ctx.wix_settings)
            print(f"{idx}. {item.title[:120]} ({len(item.images)} images)")
            print(json.dumps(product.to_payload(), ensure_ascii=False, indent=2)[:2000])
    finally:
        ctx.close()
    return 0


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="eBay -> Wix one-shot sync")
    parser.add_argument("--dry-run", action="store_true", help="Map listings but do not publish")
    parser.add_argument("-n", "--top", type=int, default=5, help="Listings to enrich in dry-run (default: 5)")
    args = parser.parse_args(argv)

    cfg = get_settings()
    configure_logging(cfg.structlog_level, json_enabled=cfg.log_json)

    if args.dry_run:
        return _dry_run(args.top)

    report = sync_core()
    if report is None:
        print("Another sync run holds the lock; skipped.")
        return 3
    print(
        "Report:",
        {
            "fetched": report.fetched,
            "enriched": report.enriched,
            "fallbacks": report.fallbacks,
            "published": report.published,
            "batches": report.batches,
        },
    )
    return 2 if report.failed else 0


if __name__ == "__main__":
    raise SystemExit(main())
