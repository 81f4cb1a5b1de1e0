"""Celery tasks for system maintenance."""

import asyncio

from api.celery_app import celery_app
from api.dependencies import get_async_session_maker
from api.services.versioning_service import build_versioning_service
from config.settings import get_settings
from logger import get_logger

logger = get_logger()
settings = get_settings()


async def run_version_cleanup(max_versions_per_file: int) -> int:
    """Run one retention sweep in a fresh session."""
    session_maker = get_async_session_maker()

    async with session_maker() as session:
        service = build_versioning_service(session, session_maker=session_maker)
        return await service.cleanup_old_versions(max_versions_per_file)


@celery_app.task(
    name="maintenance.cleanup_old_versions",
    max_retries=settings.celery.maintenance_max_retries,
    default_retry_delay=settings.celery.maintenance_retry_delay,
)
def cleanup_old_versions_task(max_versions_per_file: int | None = None):
    """
    Periodic retention sweep: keep only the newest N versions of every file.

    Runs daily (configured in Celery Beat). Blobs are released only when no
    other version or file still points at them.
    """
    limit = settings.versioning.max_versions_per_file if max_versions_per_file is None else max_versions_per_file

    try:
        logger.info(f"Starting version cleanup: max_versions_per_file={limit}")

        # Use asyncio.run() for proper event loop isolation
        deleted_count = asyncio.run(run_version_cleanup(limit))

        logger.info(f"Version cleanup completed: {deleted_count} versions deleted")

        return {
            "status": "success",
            "deleted_versions": deleted_count,
            "max_versions_per_file": limit,
            "message": f"Cleaned up {deleted_count} old file versions",
        }

    except Exception as e:
        logger.error(f"Failed to cleanup old versions: {e}")
        return {"status": "error", "error": str(e)}
