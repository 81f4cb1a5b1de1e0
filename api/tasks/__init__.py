"""Celery async tasks"""

from .maintenance import cleanup_old_versions_task
