"""Base reusable response schemas."""

from pydantic import BaseModel

from .config import BASE_MODEL_CONFIG


class SuccessResponse(BaseModel):
    """Standard success response."""

    model_config = BASE_MODEL_CONFIG

    success: bool
    message: str | None = None
