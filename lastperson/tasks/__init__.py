"""Celery tasks for Last Person Standing.

This module configures Celery for the settlement worker.
"""

from celery import Celery

from lastperson.config import get_settings

settings = get_settings()

# Create Celery application
celery_app = Celery(
    "lastperson",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "lastperson.tasks.settlement",
    ],
)

# Celery configuration
celery_app.conf.update(
    # Serialization
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    # Timezone
    timezone="UTC",
    enable_utc=True,
    # Task behavior
    task_track_started=True,
    task_time_limit=150,  # Matches settle_game
    task_soft_time_limit=120,
    # Acknowledge only once settlement has finished
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    # Result expiration
    result_expires=86400,  # 1 day
    # One snapshot at a time per worker process
    worker_prefetch_multiplier=1,
)
