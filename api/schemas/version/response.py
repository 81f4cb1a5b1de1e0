"""Version response schemas"""

from datetime import datetime

from pydantic import BaseModel, Field

from api.schemas.common import ORM_MODEL_CONFIG, SuccessResponse


class FileVersionResponse(BaseModel):
    """Descriptor of a single file version."""

    model_config = ORM_MODEL_CONFIG

    id: int
    file_id: int
    version_number: int
    file_size: int
    created_at: datetime
    created_by_id: str = Field(..., description="ID of the user who created the version")
    created_by: str | None = Field(None, description="Display name or email of the user who created the version")
    comment: str | None = None
    download_url: str


class VersionRestoreResponse(SuccessResponse):
    """Result of restoring a file to an earlier version."""

    restored_version_number: int
    snapshot: FileVersionResponse = Field(..., description="Version capturing the pre-restore state")


class VersionDeleteResponse(SuccessResponse):
    """Result of deleting a version."""

    version_id: int
    storage_released: bool = Field(..., description="Whether the underlying blob was released")
