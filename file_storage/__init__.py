"""Content store for versioned user file blobs"""

from file_storage.backends.base import StorageBackend, StorageBackendError, StorageCapacityExceededError
from file_storage.backends.local import LocalStorageBackend
from file_storage.factory import create_storage_backend, get_storage_backend
from file_storage.path_builder import StoragePathBuilder, get_path_builder

__all__ = [
    "LocalStorageBackend",
    "StorageBackend",
    "StorageBackendError",
    "StorageCapacityExceededError",
    "StoragePathBuilder",
    "create_storage_backend",
    "get_path_builder",
    "get_storage_backend",
]
