from typing import Any

from celery import Celery  # type: ignore
from celery.schedules import crontab  # type: ignore
from celery.signals import setup_logging as celery_setup_logging  # type: ignore

from wordrec.core.config import settings
from wordrec.core.logging_config import setup_logging

celery_app = Celery(
    "wordrec",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["wordrec.services.recommendation.tasks"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,
    task_soft_time_limit=8 * 60,
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
    # Feedback requests queue refreshes inline, so a missing broker must fail fast
    task_publish_retry_policy={"max_retries": 1, "interval_start": 0, "interval_step": 0.5},
)

# Periodic tasks
celery_app.conf.beat_schedule = {
    # Every night at 03:00, refresh the derived fields of recently active profiles
    "refresh-active-profiles-nightly": {
        "task": "refresh_active_profiles",
        "schedule": crontab(hour=3, minute=0),
    },
}


@celery_setup_logging.connect
def configure_worker_logging(**kwargs: Any) -> None:
    """Workers log through the same structlog setup as the API"""
    setup_logging()
