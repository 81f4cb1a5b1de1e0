"""Factory functions and in-memory collaborators for creating test data."""

import copy
from datetime import UTC, datetime
from types import SimpleNamespace
from unittest.mock import MagicMock

from sqlalchemy.exc import IntegrityError


def create_mock_file(
    file_id: int = 1,
    user_id: str = "user_123",
    filename: str = "report.txt",
    storage_path: str = "users/user_123/files/2026/10/current.txt",
    file_size: int = 100,
    **kwargs,
):
    """Create mock File object for testing."""
    file = MagicMock()
    file.id = file_id
    file.user_id = user_id
    file.filename = filename
    file.storage_path = storage_path
    file.file_size = file_size
    file.mime_type = kwargs.get("mime_type", "text/plain")
    file.is_deleted = kwargs.get("is_deleted", False)
    file.created_at = kwargs.get("created_at", datetime.now(UTC))
    file.updated_at = kwargs.get("updated_at", datetime.now(UTC))
    return file


def create_mock_version(
    version_id: int = 10,
    file_id: int = 1,
    version_number: int = 1,
    storage_path: str = "users/user_123/files/2026/10/old.txt",
    file_size: int = 50,
    created_by: str = "user_123",
    comment: str | None = None,
    **kwargs,
):
    """Create mock FileVersion object for testing."""
    version = MagicMock()
    version.id = version_id
    version.file_id = file_id
    version.version_number = version_number
    version.storage_path = storage_path
    version.file_size = file_size
    version.created_by = created_by
    version.creator = kwargs.get("creator") or SimpleNamespace(
        id=created_by, email=f"{created_by}@example.com", full_name="Test User"
    )
    version.comment = comment
    version.created_at = kwargs.get("created_at", datetime.now(UTC))
    version.file = kwargs.get("file") or create_mock_file(file_id=file_id, user_id=kwargs.get("owner_id", created_by))
    return version


# ============================================================================
# In-memory collaborators
# ============================================================================


class InMemoryCatalog:
    """Files and versions with transaction semantics close enough to a real session.

    State is snapshotted on the first change after a commit/rollback. ``rollback``
    restores the snapshot; ``commit`` discards it. Objects handed out before a
    rollback are stale afterwards, the same as expired ORM instances.
    """

    def __init__(self):
        self.files: dict[int, SimpleNamespace] = {}
        self.versions: dict[int, SimpleNamespace] = {}
        self._next_version_id = 1
        self._snapshot = None
        self.commits = 0
        self.rollbacks = 0
        self.before_version_insert = None

    # session API
    async def commit(self):
        self._snapshot = None
        self.commits += 1

    async def rollback(self):
        if self._snapshot is not None:
            self.files, self.versions, self._next_version_id = self._snapshot
            self._snapshot = None
        self.rollbacks += 1

    async def flush(self):
        return None

    def _begin(self):
        if self._snapshot is None:
            self._snapshot = copy.deepcopy((self.files, self.versions, self._next_version_id))

    # seeding helpers
    def add_file(self, file_id: int, user_id: str, storage_path: str, file_size: int, filename: str = "report.txt"):
        self.files[file_id] = SimpleNamespace(
            id=file_id,
            user_id=user_id,
            filename=filename,
            storage_path=storage_path,
            file_size=file_size,
            is_deleted=False,
            updated_at=datetime.now(UTC),
        )
        return self.files[file_id]

    def add_version(self, file_id: int, version_number: int, storage_path: str, file_size: int, created_by: str):
        version = SimpleNamespace(
            id=self._next_version_id,
            file_id=file_id,
            version_number=version_number,
            storage_path=storage_path,
            file_size=file_size,
            created_by=created_by,
            creator=SimpleNamespace(id=created_by, email=f"{created_by}@example.com", full_name=None),
            comment=None,
            created_at=datetime.now(UTC),
        )
        self.versions[version.id] = version
        self._next_version_id += 1
        return version

    def version_numbers(self, file_id: int) -> list[int]:
        return sorted(v.version_number for v in self.versions.values() if v.file_id == file_id)


class InMemoryFileRepository:
    """FileRepository over an InMemoryCatalog."""

    def __init__(self, catalog: InMemoryCatalog):
        self.catalog = catalog

    async def get_by_id(self, file_id: int, include_deleted: bool = False, for_update: bool = False):
        file = self.catalog.files.get(file_id)
        if file is None or (file.is_deleted and not include_deleted):
            return None
        # Detached copy, like a row loaded into a session before someone else commits
        return copy.copy(file)

    async def repoint(self, file_id: int, expected_path: str, storage_path: str, file_size: int) -> bool:
        current = self.catalog.files.get(file_id)
        if current is None or current.storage_path != expected_path:
            return False
        self.catalog._begin()
        current = self.catalog.files[file_id]
        current.storage_path = storage_path
        current.file_size = file_size
        current.updated_at = datetime.now(UTC)
        return True

    async def is_path_referenced(self, storage_path: str) -> bool:
        return any(f.storage_path == storage_path for f in self.catalog.files.values())


class InMemoryVersionRepository:
    """FileVersionRepository over an InMemoryCatalog, enforcing (file_id, version_number) uniqueness."""

    def __init__(self, catalog: InMemoryCatalog):
        self.catalog = catalog

    async def get_by_id(self, version_id: int):
        version = self.catalog.versions.get(version_id)
        if version is not None:
            version.file = self.catalog.files.get(version.file_id)
        return version

    async def list_by_file(self, file_id: int, newest_first: bool = True):
        versions = [v for v in self.catalog.versions.values() if v.file_id == file_id]
        return sorted(versions, key=lambda v: v.version_number, reverse=newest_first)

    async def get_next_version_number(self, file_id: int) -> int:
        return max(self.catalog.version_numbers(file_id), default=0) + 1

    async def create(self, file_id, version_number, storage_path, file_size, created_by, comment=None):
        if self.catalog.before_version_insert is not None:
            await self.catalog.before_version_insert(file_id, version_number)

        if version_number in self.catalog.version_numbers(file_id):
            raise IntegrityError("INSERT INTO file_versions", {}, Exception("uq_file_versions_file_number"))

        self.catalog._begin()
        version = self.catalog.add_version(file_id, version_number, storage_path, file_size, created_by)
        version.comment = comment
        return version

    async def delete(self, version_id: int) -> bool:
        if version_id not in self.catalog.versions:
            return False
        self.catalog._begin()
        del self.catalog.versions[version_id]
        return True

    async def is_path_referenced(self, storage_path: str, exclude_version_id: int | None = None) -> bool:
        return any(
            v.storage_path == storage_path and v.id != exclude_version_id for v in self.catalog.versions.values()
        )

    async def get_file_ids_exceeding(self, max_versions: int) -> list[int]:
        counts: dict[int, int] = {}
        for version in self.catalog.versions.values():
            counts[version.file_id] = counts.get(version.file_id, 0) + 1
        return sorted(file_id for file_id, count in counts.items() if count > max_versions)


class InMemoryQuotaLedger:
    """QuotaService stand-in keeping used/reserved counters per user."""

    def __init__(self):
        self.users: dict[str, dict[str, int]] = {}

    def add_user(self, user_id: str, quota: int, used: int = 0) -> None:
        self.users[user_id] = {"quota": quota, "used": used, "reserved": 0}

    async def reserve(self, user_id: str, size: int) -> bool:
        account = self.users[user_id]
        if account["used"] + account["reserved"] + size > account["quota"]:
            return False
        account["reserved"] += size
        return True

    async def confirm(self, user_id: str, size: int) -> None:
        account = self.users[user_id]
        account["reserved"] -= size
        account["used"] += size

    async def cancel_reservation(self, user_id: str, size: int) -> None:
        self.users[user_id]["reserved"] -= size

    async def release(self, user_id: str, size: int) -> None:
        account = self.users[user_id]
        account["used"] = max(account["used"] - size, 0)
