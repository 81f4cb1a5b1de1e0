from .auth_models import QuotaExtensionModel, UserModel
from .config import DatabaseConfig
from .manager import DatabaseManager
from .models import ActivityModel, Base, FileModel, FileVersionModel

__all__ = [
    "ActivityModel",
    "Base",
    "DatabaseConfig",
    "DatabaseManager",
    "FileModel",
    "FileVersionModel",
    "QuotaExtensionModel",
    "UserModel",
]
