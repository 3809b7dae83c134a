"""
Celery application for queued inventory scans.

Workers:
    celery -A repo_inventory.celery_app worker -Q inventory_scan
"""

from celery import Celery

from repo_inventory.config import settings
from repo_inventory.core.logging import setup_logging

celery_app = Celery(
    "repo_inventory",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["repo_inventory.tasks.inventory_scan"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # A worker that dies mid-scan leaves the message to be redelivered
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    task_default_queue=settings.SCAN_QUEUE,
    result_expires=24 * 3600,
)


@celery_app.on_after_configure.connect
def _configure_logging(sender, **kwargs):
    setup_logging()
