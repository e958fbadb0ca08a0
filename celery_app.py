"""Celery application configuration for StockFlow background tasks."""

from celery import Celery
from celery.schedules import crontab

from stockflow.config import settings

celery = Celery("stockflow")

celery.conf.update(
    broker_url=settings.celery_broker_url,
    result_backend=settings.celery_result_backend,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
    # --- Queue routing per job type ---
    task_routes={
        "stockflow.modules.collection_reminder.*": {"queue": "collections"},
    },
    # --- Reliability settings ---
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    result_expires=86400,  # 24 hours
    # --- Broker transport options (Redis reliability) ---
    broker_transport_options={
        "max_retries": 10,
        "interval_start": 0.2,
        "interval_step": 0.5,
        "interval_max": 5.0,
        "retry_on_timeout": True,
        "visibility_timeout": 3600,
    },
    # --- Beat schedule ---
    beat_schedule={
        "generate-collection-reminders-daily": {
            "task": "stockflow.modules.collection_reminder.tasks.generate_collection_reminders",
            "schedule": crontab(hour=settings.reminder_generation_hour, minute=0),
        },
    },
)

celery.autodiscover_tasks([
    "stockflow.modules.collection_reminder",
])
