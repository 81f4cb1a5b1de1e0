"""Tests for the settings layer and the example environment file."""

from pathlib import Path

import pytest

ENV_EXAMPLE = Path(__file__).resolve().parents[3] / ".env.example"


def _example_keys() -> list[str]:
    keys = []
    for line in ENV_EXAMPLE.read_text().splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            keys.append(line.split("=", 1)[0])
    return keys


@pytest.mark.unit
class TestEnvExample:
    """Every variable in .env.example must be read by some settings group."""

    def test_every_example_variable_maps_to_a_field(self):
        """Prefix selects the settings group, the remainder must name one of its fields."""
        from config.settings import Settings

        groups = {}
        for field in Settings.model_fields.values():
            group = field.annotation
            groups[group.model_config["env_prefix"].upper()] = group

        unknown = []
        for key in _example_keys():
            prefix = next((p for p in groups if key.startswith(p)), None)
            if prefix is None or key[len(prefix) :].lower() not in groups[prefix].model_fields:
                unknown.append(key)

        assert _example_keys(), ".env.example has no variables"
        assert not unknown, f"Variables no settings field reads: {unknown}"


@pytest.mark.unit
class TestRedisCelerySync:
    """Celery broker follows the Redis settings."""

    def test_redis_variables_feed_celery_broker(self, monkeypatch):
        """REDIS_HOST/PORT/DB/PASSWORD build the broker and result backend URLs."""
        from config.settings import Settings

        monkeypatch.delenv("CELERY_BROKER_URL", raising=False)
        monkeypatch.delenv("CELERY_RESULT_BACKEND", raising=False)
        monkeypatch.setenv("REDIS_HOST", "redis.internal")
        monkeypatch.setenv("REDIS_PORT", "6380")
        monkeypatch.setenv("REDIS_DB", "2")
        monkeypatch.setenv("REDIS_PASSWORD", "secret")

        settings = Settings()

        assert settings.celery.broker_url == "redis://:secret@redis.internal:6380/2"
        assert settings.celery.result_backend == "redis://:secret@redis.internal:6380/2"

    def test_explicit_celery_broker_wins(self, monkeypatch):
        """An explicitly configured broker is not overwritten."""
        from config.settings import Settings

        monkeypatch.setenv("CELERY_BROKER_URL", "redis://broker:6379/5")
        monkeypatch.setenv("REDIS_HOST", "redis.internal")

        assert Settings().celery.broker_url == "redis://broker:6379/5"

    def test_database_url_uses_async_driver(self, monkeypatch):
        """Only the asyncpg URL is exposed."""
        from config.settings import DatabaseSettings

        monkeypatch.setenv("DATABASE_HOST", "db.internal")

        settings = DatabaseSettings()

        assert settings.url.startswith("postgresql+asyncpg://")
        assert "db.internal" in settings.url
        assert not hasattr(settings, "sync_url")
