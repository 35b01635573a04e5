"""Celery application bootstrap."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict

from celery import Celery, signals
from celery.schedules import schedule as celery_schedule

from .settings import Settings, get_settings
from .utils.logging import configure_logging

SYNC_TASK_NAME = "listings.tasks.sync.sync_store_listings"

_CELERY_APP: Celery | None = None


def create_celery_app(settings: Settings | None = None) -> Celery:
    """Build the Celery instance from settings."""
    config = settings or get_settings()
    configure_logging(config.structlog_level, json_enabled=config.log_json)

    app = Celery("listings", broker=config.redis_url, backend=config.redis_url)
    app.conf.update(
        task_default_queue="listings.default",
        task_default_exchange="listings",
        task_default_routing_key="listings.default",
        task_soft_time_limit=config.celery_task_soft_time_limit,
        worker_concurrency=config.celery_worker_concurrency,
        beat_schedule=_build_beat_schedule(config),
        timezone="UTC",
        enable_utc=True,
        worker_send_task_events=True,
        task_send_sent_event=True,
    )

    app.autodiscover_tasks(["listings.tasks"], related_name="sync")
    _install_signal_handlers()
    return app


def get_celery_app() -> Celery:
    """Return the singleton Celery instance."""
    global _CELERY_APP
    if _CELERY_APP is None:
        _CELERY_APP = create_celery_app()
    return _CELERY_APP


def _build_beat_schedule(settings: Settings) -> Dict[str, Dict[str, Any]]:
    if not settings.sync_enabled:
        return {}
    interval = int(settings.sync_interval_seconds)
    return {
        f"sync.{settings.ebay_store_name.lower()}": {
            "task": SYNC_TASK_NAME,
            "schedule": celery_schedule(timedelta(seconds=interval)),
            # a tick that waited longer than one period is superseded by the next
            "options": {"queue": "listings.sync", "expires": interval},
        }
    }


def _on_worker_process_init(**kwargs: Any) -> None:
    from .context import start_token_refresher

    start_token_refresher()


def _on_worker_process_shutdown(**kwargs: Any) -> None:
    from .context import shutdown_context

    shutdown_context()


def _on_worker_shutdown(sender=None, **kwargs):  # noqa: ANN001
    logging.getLogger("listings.worker").info("Celery worker shutdown detected", extra={"sender": str(sender)})


def _install_signal_handlers() -> None:
    signals.worker_process_init.connect(_on_worker_process_init, weak=False)
    signals.worker_process_shutdown.connect(_on_worker_process_shutdown, weak=False)
    signals.worker_shutdown.connect(_on_worker_shutdown, weak=False)
