"""Storage backend implementations"""

from file_storage.backends.base import StorageBackend, StorageBackendError, StorageCapacityExceededError
from file_storage.backends.local import LocalStorageBackend

__all__ = [
    "LocalStorageBackend",
    "StorageBackend",
    "StorageBackendError",
    "StorageCapacityExceededError",
]
