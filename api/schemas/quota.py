"""Storage quota schemas"""

from pydantic import BaseModel, Field

from api.schemas.common import BASE_MODEL_CONFIG


class QuotaStatusResponse(BaseModel):
    """Storage usage of a user against the effective quota (bytes)."""

    model_config = BASE_MODEL_CONFIG

    user_id: str
    base_quota: int
    extension_bytes: int = Field(0, description="Bytes granted by active quota extensions")
    total_quota: int
    used_storage: int
    reserved_storage: int
    available_storage: int
    usage_percentage: float = Field(..., description="Used bytes relative to total quota, rounded to 2 places")
