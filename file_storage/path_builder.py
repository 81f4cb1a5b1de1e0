"""Storage path builder for consistent path generation"""

import uuid
from datetime import UTC, datetime
from pathlib import PurePosixPath

from logger import get_logger

logger = get_logger(__name__)


class StoragePathBuilder:
    """Build relative storage paths for user content blobs.

    Every blob gets its own random name, so a path is never reused once
    allocated, even after the blob behind it has been deleted.
    """

    def user_root(self, user_id: str) -> PurePosixPath:
        """
        Get user root directory.

        Returns:
            Path like: users/01KFHA26XYZ...
        """
        return PurePosixPath("users") / str(user_id)

    def user_files_dir(self, user_id: str, now: datetime | None = None) -> PurePosixPath:
        """
        Get the directory new content for a user is written to.

        Returns:
            Path like: users/01KFHA26XYZ.../files/2026/10
        """
        now = now or datetime.now(UTC)
        return self.user_root(user_id) / "files" / f"{now:%Y}" / f"{now:%m}"

    def new_blob_path(self, prefix: str = "", suffix: str = "") -> str:
        """
        Allocate a fresh blob path.

        Args:
            prefix: Relative directory (may be empty)
            suffix: Filename suffix (e.g., '.pdf')

        Returns:
            Relative path like: users/01KF.../files/2026/10/3f9c...e1.pdf
        """
        name = f"{uuid.uuid4().hex}{suffix}"
        if not prefix:
            return name
        return str(PurePosixPath(prefix) / name)

    @staticmethod
    def suffix_for(filename: str | None) -> str:
        """Return the lowercased extension of ``filename`` (with dot) or ''."""
        if not filename:
            return ""
        suffix = PurePosixPath(filename).suffix.lower()
        # Extensions longer than this are not real extensions
        return suffix if 1 < len(suffix) <= 16 else ""


# Singleton instance
_path_builder: StoragePathBuilder | None = None


def get_path_builder() -> StoragePathBuilder:
    """
    Get singleton path builder instance.

    Returns:
        StoragePathBuilder instance (cached)
    """
    global _path_builder

    if _path_builder is None:
        _path_builder = StoragePathBuilder()

    return _path_builder
