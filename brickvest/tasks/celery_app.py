"""Celery configuration."""

from celery import Celery

from brickvest.core.config import get_settings

settings = get_settings()

celery_app = Celery(
    "brickvest_tasks",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=[
        "brickvest.tasks.notifications",
        "brickvest.tasks.reconciliation",
    ],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_prefetch_multiplier=1,
    result_expires=3600,
    task_default_retry_delay=60,
    task_max_retries=5,
    task_routes={
        "notifications.*": {"queue": "notifications"},
        "reconciliation.*": {"queue": "reconciliation"},
    },
    beat_schedule={
        "reconcile-withdrawals": {
            "task": "reconciliation.reconcile_withdrawals",
            "schedule": float(settings.withdrawal_reconcile_after_seconds),
        },
        "reconcile-wallets": {
            "task": "reconciliation.reconcile_wallets",
            "schedule": 3600.0,
        },
    },
)
