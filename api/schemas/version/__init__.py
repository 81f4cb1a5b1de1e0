"""File version schemas."""

from .request import VersionCreateParams
from .response import FileVersionResponse, VersionDeleteResponse, VersionRestoreResponse

__all__ = [
    "FileVersionResponse",
    "VersionCreateParams",
    "VersionDeleteResponse",
    "VersionRestoreResponse",
]
