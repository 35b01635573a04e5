"""Celery task for the scheduled eBay -> Wix sync."""

from __future__ import annotations

import uuid
from typing import Callable

import redis
from celery import shared_task

from listings.context import get_sync_context
from listings.services.pipeline import SyncPipeline, SyncReport
from listings.services.run_lock import InMemoryRunLock, RedisRunLock, RunLock
from listings.settings import get_settings
from listings.utils.logging import get_logger


# Injection points for tests; each must return an object with .run() / .acquire()+.release().
PIPELINE_FACTORY: Callable[[], SyncPipeline] | None = None
LOCK_FACTORY: Callable[[], RunLock] | None = None

_LOCAL_LOCK = InMemoryRunLock()


def _get_pipeline() -> SyncPipeline:
    if PIPELINE_FACTORY is not None:
        return PIPELINE_FACTORY()
    return get_sync_context().build_pipeline()


def _build_lock(logger) -> RunLock:
    if LOCK_FACTORY is not None:
        return LOCK_FACTORY()
    settings = get_settings()
    try:
        client = redis.Redis.from_url(settings.redis_url, socket_connect_timeout=0.2)
        client.ping()
    except (redis.RedisError, ValueError):
        logger.info("sync.lock.memory", extra={"reason": "redis_ping_failed"})
        return _LOCAL_LOCK
    logger.info("sync.lock.redis", extra={"redis_url": settings.redis_url})
    return RedisRunLock(client, ttl_seconds=int(settings.sync_lock_ttl_seconds))


def sync_core() -> SyncReport | None:
    """Run one sync unless another run still holds the lock; never raises."""
    logger = get_logger(__name__)
    trace_id = str(uuid.uuid4())
    extra = {"trace_id": trace_id}
    try:
        lock = _build_lock(logger)
        if not lock.acquire():
            logger.warning("sync.skipped_overlap", extra=extra)
            return None
    except Exception:
        logger.exception("sync.lock_failed", extra=extra)
        return None

    try:
        logger.info("sync.tick", extra=extra)
        return _get_pipeline().run()
    except Exception:
        logger.exception("sync.setup_failed", extra=extra)
        return SyncReport(failed=True)
    finally:
        try:
            lock.release()
        except Exception:
            logger.exception("sync.lock_release_failed", extra=extra)


@shared_task(name="listings.tasks.sync.sync_store_listings", ignore_result=True)
def sync_store_listings() -> int:  # pragma: no cover - thin wrapper
    report = sync_core()
    return report.published if report else 0
