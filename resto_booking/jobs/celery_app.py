"""Celery application configuration"""

from celery import Celery
from celery.signals import setup_logging

from resto_booking.config import settings
from resto_booking.logging_config import configure_logging

# Create Celery app
celery_app = Celery(
    "resto_booking",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "resto_booking.jobs.tasks",
    ],
)

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    task_reject_on_worker_lost=True,

    # Beat schedule for periodic tasks
    beat_schedule={
        "purge-canceled-reservations": {
            "task": "purge_canceled_reservations",
            "schedule": 86400.0,  # Daily
        },
        "complete-past-reservations": {
            "task": "complete_past_reservations",
            "schedule": 3600.0,  # Every hour
        },
    },
)


@setup_logging.connect
def _configure_worker_logging(**kwargs):
    configure_logging()
