"""Worker entry point: ``celery -A listings.worker worker -B -Q listings.sync,listings.default``."""

from .celery_app import get_celery_app

app = get_celery_app()
