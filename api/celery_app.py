"""Celery configuration for background maintenance"""

import sys
from pathlib import Path

project_root = Path(__file__).resolve().parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from celery import Celery  # noqa: E402
from celery.schedules import crontab  # noqa: E402
from celery.signals import task_prerun  # noqa: E402

from config.settings import get_settings  # noqa: E402
from logger import get_logger, short_task_id  # noqa: E402

settings = get_settings()
logger = get_logger(__name__)

celery_app = Celery(
    "vault_storage",
    broker=settings.celery.broker_url,
    backend=settings.celery.result_backend,
    include=["api.tasks.maintenance"],
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=settings.celery.task_time_limit,
    task_soft_time_limit=settings.celery.task_soft_time_limit,
    worker_prefetch_multiplier=settings.celery.worker_prefetch_multiplier,
    worker_max_tasks_per_child=settings.celery.worker_max_tasks_per_child,
    task_acks_late=settings.celery.task_acks_late,
    task_reject_on_worker_lost=settings.celery.task_reject_on_worker_lost,
    result_expires=settings.celery.result_expires,
)

# Queues:
#   maintenance – periodic retention sweep (prefork worker)
celery_app.conf.task_routes = {
    "maintenance.*": {"queue": "maintenance"},
}

celery_app.conf.beat_schedule = {}
if settings.versioning.cleanup_enabled:
    celery_app.conf.beat_schedule["cleanup-old-versions"] = {
        "task": "maintenance.cleanup_old_versions",
        "schedule": crontab(
            hour=settings.versioning.cleanup_hour_utc,
            minute=settings.versioning.cleanup_minute_utc,
        ),
    }


@task_prerun.connect
def task_prerun_handler(task_id, task, *_args, **_kwargs):
    """Log task dispatch (DEBUG, Celery already logs 'received' at INFO)."""
    task_short = task.name.rsplit(".", 1)[-1] if task.name else "unknown"
    logger.debug(f"Worker executing | task={task_short} • id={short_task_id(task_id)}")
