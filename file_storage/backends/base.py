"""Abstract content store interface"""

from abc import ABC, abstractmethod


class StorageBackend(ABC):
    """Abstract content store keyed by opaque storage paths.

    Paths are assigned by the backend on ``put`` and are never reused. Writes
    and deletes are atomic per path; there are no cross-path transactions.
    """

    @abstractmethod
    async def put(self, content: bytes, size_hint: int, prefix: str = "", suffix: str = "") -> str:
        """
        Store a new blob under a freshly generated path.

        Args:
            content: Blob content as bytes
            size_hint: Expected size in bytes (used for capacity checks)
            prefix: Relative directory the new path is placed under
            suffix: Optional filename suffix (e.g. '.pdf')

        Returns:
            Relative storage path of the new blob

        Raises:
            StorageCapacityExceededError: If backend capacity is exceeded
            StorageBackendError: If the blob could not be written
        """

    @abstractmethod
    async def get(self, path: str) -> bytes:
        """
        Load a blob.

        Args:
            path: Relative storage path

        Returns:
            Blob content as bytes

        Raises:
            FileNotFoundError: If blob doesn't exist
        """

    @abstractmethod
    async def exists(self, path: str) -> bool:
        """
        Check if blob exists.

        Args:
            path: Relative storage path

        Returns:
            True if blob exists, False otherwise
        """

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """
        Delete a blob. Deleting a missing blob is not an error.

        Args:
            path: Relative storage path

        Returns:
            True if blob was deleted, False if not found
        """

    @abstractmethod
    async def get_size(self, path: str) -> int:
        """
        Get blob size.

        Args:
            path: Relative storage path

        Returns:
            Blob size in bytes

        Raises:
            FileNotFoundError: If blob doesn't exist
        """


class StorageBackendError(Exception):
    """Raised when the content store fails to complete an operation"""


class StorageCapacityExceededError(StorageBackendError):
    """Raised when backend capacity is exceeded"""
