"""Common schemas"""

from .config import BASE_MODEL_CONFIG, ORM_MODEL_CONFIG
from .responses import SuccessResponse
from .validators import strip_or_none

__all__ = [
    "BASE_MODEL_CONFIG",
    "ORM_MODEL_CONFIG",
    "SuccessResponse",
    "strip_or_none",
]
