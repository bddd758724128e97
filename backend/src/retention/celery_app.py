"""Celery application for retention runs.

The cadence is owned by whatever triggers the task (an external scheduler
sending `retention.cleanup`, or a beat schedule configured at deployment).

Start a worker:
    celery -A retention.celery_app worker --loglevel=info
"""

from celery import Celery

from config import get_settings

settings = get_settings()

celery_app = Celery(
    "retention",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=["retention.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
)
