"""
Celery application configuration.
"""

from celery import Celery

from gatekeeper_worker.config import settings

app = Celery(
    "gatekeeper-worker",
    broker=settings.broker_url,
    backend=settings.result_backend,
    include=["gatekeeper_worker.tasks"],
)

app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,

    task_routes={
        "gatekeeper_worker.tasks.*": {"queue": "scheduled"},
    },

    # Retry settings
    task_default_retry_delay=60,
    task_max_retries=3,

    result_expires=3600,

    worker_prefetch_multiplier=1,

    # Beat schedule (periodic tasks)
    beat_schedule={
        "delete-expired-buckets": {
            "task": "gatekeeper_worker.tasks.delete_expired_buckets",
            "schedule": settings.sweep_interval,
        },
        "delete-expired-refresh-tokens": {
            "task": "gatekeeper_worker.tasks.delete_expired_refresh_tokens",
            "schedule": settings.sweep_interval,
        },
    },
)


if __name__ == "__main__":
    app.start()
