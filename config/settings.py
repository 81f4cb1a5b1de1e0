"""Unified application settings - single source of truth for all configuration"""

import warnings
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# ============================================================================
# APP SETTINGS
# ============================================================================


class AppSettings(BaseSettings):
    """Application-level settings"""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )

    name: str = Field(default="Vault Storage", description="Application name")
    version: str = Field(default="0.4.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")
    api_prefix: str = Field(default="/api/v1", description="Public API prefix used to build download URLs")


# ============================================================================
# DATABASE SETTINGS
# ============================================================================


class DatabaseSettings(BaseSettings):
    """PostgreSQL database settings"""

    model_config = SettingsConfigDict(
        env_prefix="DATABASE_",
        case_sensitive=False,
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, ge=1, le=65535, description="Database port")
    database: str = Field(default="vault_storage", description="Database name")
    username: str = Field(default="postgres", description="Database username")
    password: str = Field(default="", description="Database password")

    # Connection pool settings
    pool_size: int = Field(default=20, ge=1, description="Connection pool size")
    max_overflow: int = Field(default=10, ge=0, description="Max overflow connections")
    pool_timeout: int = Field(default=30, ge=1, description="Pool timeout in seconds")

    @property
    def url(self) -> str:
        """Async database URL"""
        return f"postgresql+asyncpg://{self.username}:{self.password}@{self.host}:{self.port}/{self.database}"


# ============================================================================
# REDIS SETTINGS
# ============================================================================


class RedisSettings(BaseSettings):
    """Redis settings"""

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        case_sensitive=False,
    )

    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, ge=1, le=65535, description="Redis port")
    db: int = Field(default=0, ge=0, le=15, description="Redis database number")
    password: str = Field(default="", description="Redis password (optional)")

    @property
    def url(self) -> str:
        """Redis URL"""
        if self.password:
            return f"redis://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"redis://{self.host}:{self.port}/{self.db}"


# ============================================================================
# CELERY SETTINGS
# ============================================================================


class CelerySettings(BaseSettings):
    """Celery task queue settings"""

    model_config = SettingsConfigDict(
        env_prefix="CELERY_",
        case_sensitive=False,
    )

    # Broker & Backend (auto-constructed from Redis settings)
    broker_url: str = Field(default="redis://localhost:6379/0", description="Celery broker URL")
    result_backend: str = Field(default="redis://localhost:6379/0", description="Celery result backend URL")

    # Task execution limits
    task_time_limit: int = Field(default=3600, ge=60, description="Hard time limit per task (seconds)")
    task_soft_time_limit: int = Field(default=3300, ge=60, description="Soft time limit per task (seconds)")
    task_acks_late: bool = Field(default=True, description="Acknowledge tasks after completion")
    task_reject_on_worker_lost: bool = Field(default=True, description="Reject task if worker is lost")
    result_expires: int = Field(default=86400, ge=3600, description="Result expiration time (seconds)")

    # Worker settings
    worker_prefetch_multiplier: int = Field(default=1, ge=1, description="Worker prefetch multiplier")
    worker_max_tasks_per_child: int = Field(default=50, ge=1, description="Max tasks per worker before restart")

    maintenance_max_retries: int = Field(default=2, ge=0, description="Max retries for maintenance tasks")
    maintenance_retry_delay: int = Field(default=300, ge=0, description="Retry delay for maintenance tasks (seconds)")

    @model_validator(mode="after")
    def validate_time_limits(self) -> "CelerySettings":
        """Validate that soft limit is less than hard limit"""
        if self.task_soft_time_limit >= self.task_time_limit:
            raise ValueError("task_soft_time_limit must be less than task_time_limit")
        return self


# ============================================================================
# STORAGE SETTINGS
# ============================================================================


class StorageSettings(BaseSettings):
    """Content store settings"""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        case_sensitive=False,
    )

    # Storage backend type
    type: Literal["LOCAL"] = Field(default="LOCAL", description="Storage backend type")

    # LOCAL storage settings
    local_path: str = Field(default="storage", description="Local storage root path")
    local_max_size_gb: int | None = Field(default=None, ge=1, description="Max local storage size (GB)")

    # Write protocol
    write_timeout_seconds: float = Field(
        default=120.0, gt=0, description="Content write timeout; exceeded writes count as failed writes"
    )
    max_upload_size_mb: int = Field(default=5000, ge=1, description="Max size of a single version (MB)")

    @model_validator(mode="after")
    def validate_storage_config(self) -> "StorageSettings":
        """Validate storage configuration based on type"""
        if self.type == "LOCAL":
            local_path = Path(self.local_path)
            if not local_path.exists():
                try:
                    local_path.mkdir(parents=True, exist_ok=True)
                except Exception as e:
                    warnings.warn(f"Could not create storage directory {self.local_path}: {e}", stacklevel=2)
        return self


# ============================================================================
# QUOTA SETTINGS
# ============================================================================


class QuotaSettings(BaseSettings):
    """Per-user storage quota defaults"""

    model_config = SettingsConfigDict(
        env_prefix="QUOTA_",
        case_sensitive=False,
    )

    default_storage_quota_bytes: int = Field(
        default=10 * 1024**3, ge=0, description="Storage quota assigned to new users (bytes)"
    )
    min_storage_quota_bytes: int = Field(
        default=1024**3, ge=0, description="Lowest quota an administrator may set (bytes)"
    )


# ============================================================================
# VERSIONING SETTINGS
# ============================================================================


class VersioningSettings(BaseSettings):
    """File version retention settings"""

    model_config = SettingsConfigDict(
        env_prefix="VERSIONING_",
        case_sensitive=False,
    )

    max_versions_per_file: int = Field(
        default=10, ge=0, le=1000, description="Versions kept per file by the retention sweep"
    )
    cleanup_enabled: bool = Field(default=True, description="Enable the scheduled retention sweep")
    cleanup_hour_utc: int = Field(default=4, ge=0, le=23, description="Hour (UTC) of the daily retention sweep")
    cleanup_minute_utc: int = Field(default=30, ge=0, le=59, description="Minute of the daily retention sweep")


# ============================================================================
# MAIN SETTINGS
# ============================================================================


class Settings(BaseSettings):
    """Main application settings - single source of truth"""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app: AppSettings = Field(default_factory=AppSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    celery: CelerySettings = Field(default_factory=CelerySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    quota: QuotaSettings = Field(default_factory=QuotaSettings)
    versioning: VersioningSettings = Field(default_factory=VersioningSettings)

    @model_validator(mode="after")
    def validate_production_settings(self) -> "Settings":
        """Warn about insecure settings in strict production mode"""
        import os

        is_strict_production = os.getenv("APP_DEBUG", "").lower() == "false"

        if is_strict_production and not self.database.password:
            warnings.warn("Database password is empty in production mode", stacklevel=2)

        return self

    @model_validator(mode="after")
    def sync_redis_to_celery(self) -> "Settings":
        """Auto-sync Redis settings to Celery if not explicitly set"""
        if self.celery.broker_url == "redis://localhost:6379/0":
            self.celery.broker_url = self.redis.url

        if self.celery.result_backend == "redis://localhost:6379/0":
            self.celery.result_backend = self.redis.url

        return self


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================

_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get settings singleton instance"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Reset settings singleton (useful for testing)"""
    global _settings_instance
    _settings_instance = None


# Convenience instance for direct import
settings = get_settings()
