"""Unit tests for maintenance Celery tasks."""

from unittest.mock import AsyncMock

import pytest


@pytest.mark.unit
class TestCleanupOldVersionsTask:
    """Tests for the scheduled retention sweep task."""

    def test_task_reports_deleted_count(self, mocker):
        """Successful sweep returns a success payload with the count."""
        from api.tasks.maintenance import cleanup_old_versions_task

        run = mocker.patch("api.tasks.maintenance.run_version_cleanup", AsyncMock(return_value=3))

        result = cleanup_old_versions_task.run(max_versions_per_file=2)

        run.assert_awaited_once_with(2)
        assert result["status"] == "success"
        assert result["deleted_versions"] == 3

    def test_task_uses_configured_threshold(self, mocker):
        """Without an explicit threshold the configured one is used."""
        from api.tasks.maintenance import cleanup_old_versions_task
        from config.settings import get_settings

        run = mocker.patch("api.tasks.maintenance.run_version_cleanup", AsyncMock(return_value=0))

        cleanup_old_versions_task.run()

        run.assert_awaited_once_with(get_settings().versioning.max_versions_per_file)

    def test_task_error_payload(self, mocker):
        """Sweep failure is reported, not raised."""
        from api.tasks.maintenance import cleanup_old_versions_task

        mocker.patch("api.tasks.maintenance.run_version_cleanup", AsyncMock(side_effect=RuntimeError("db down")))

        result = cleanup_old_versions_task.run(max_versions_per_file=2)

        assert result == {"status": "error", "error": "db down"}

    def test_beat_schedule_registered(self):
        """Daily retention sweep is scheduled on the maintenance queue."""
        from api.celery_app import celery_app

        entry = celery_app.conf.beat_schedule["cleanup-old-versions"]

        assert entry["task"] == "maintenance.cleanup_old_versions"
        assert celery_app.conf.task_routes["maintenance.*"] == {"queue": "maintenance"}
