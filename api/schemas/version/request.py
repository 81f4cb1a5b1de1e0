"""Version request schemas"""

from pydantic import BaseModel, Field, field_validator

from api.schemas.common import BASE_MODEL_CONFIG, strip_or_none


class VersionCreateParams(BaseModel):
    """Validated parameters of a new file version."""

    model_config = BASE_MODEL_CONFIG

    size_bytes: int = Field(..., ge=0, description="Size of the new content in bytes")
    comment: str | None = Field(None, max_length=255, description="Optional version comment")

    @field_validator("comment", mode="before")
    @classmethod
    def clean_comment(cls, v: str | None) -> str | None:
        return strip_or_none(v)
