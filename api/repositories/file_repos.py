"""File and file version repositories.

Repositories only add/flush; the calling service owns the transaction and
decides when to commit or roll back.
"""

from datetime import UTC, datetime

from sqlalchemy import delete, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database.models import FileModel, FileVersionModel
from logger import get_logger

logger = get_logger()


class FileRepository:
    """Repository for working with files."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(
        self, file_id: int, include_deleted: bool = False, for_update: bool = False
    ) -> FileModel | None:
        """
        Get file by ID.

        Always reloads the row, so a file already in the session reflects
        changes committed by other transactions since it was first loaded.

        Args:
            file_id: File ID
            include_deleted: Include soft deleted files
            for_update: Lock the row until the current transaction ends

        Returns:
            File or None
        """
        query = (
            select(FileModel)
            .where(FileModel.id == file_id)
            .execution_options(populate_existing=True)
        )

        if not include_deleted:
            query = query.where(FileModel.is_deleted == False)  # noqa: E712
        if for_update:
            query = query.with_for_update()

        result = await self.session.execute(query)
        return result.scalars().first()

    async def repoint(self, file_id: int, expected_path: str, storage_path: str, file_size: int) -> bool:
        """
        Point file at a different blob, only if it still points at ``expected_path``.

        Returns:
            False if another transaction repointed the file first
        """
        result = await self.session.execute(
            update(FileModel)
            .where(FileModel.id == file_id, FileModel.storage_path == expected_path)
            .values(storage_path=storage_path, file_size=file_size, updated_at=datetime.now(UTC))
        )
        return result.rowcount == 1

    async def is_path_referenced(self, storage_path: str) -> bool:
        """Check whether any file (including soft deleted ones) points at a path."""
        result = await self.session.execute(select(exists().where(FileModel.storage_path == storage_path)))
        return bool(result.scalar())


class FileVersionRepository:
    """Repository for working with file versions."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, version_id: int) -> FileVersionModel | None:
        """Get version by ID together with its parent file."""
        result = await self.session.execute(
            select(FileVersionModel)
            .options(selectinload(FileVersionModel.file))
            .where(FileVersionModel.id == version_id)
        )
        return result.scalars().first()

    async def list_by_file(self, file_id: int, newest_first: bool = True) -> list[FileVersionModel]:
        """List all versions of a file ordered by version number."""
        order = FileVersionModel.version_number.desc() if newest_first else FileVersionModel.version_number.asc()
        result = await self.session.execute(
            select(FileVersionModel).where(FileVersionModel.file_id == file_id).order_by(order)
        )
        return list(result.scalars().all())

    async def get_next_version_number(self, file_id: int) -> int:
        """Return 1 + highest existing version number, or 1 if there are none."""
        current = await self.session.scalar(
            select(func.max(FileVersionModel.version_number)).where(FileVersionModel.file_id == file_id)
        )
        return (current or 0) + 1

    async def create(
        self,
        file_id: int,
        version_number: int,
        storage_path: str,
        file_size: int,
        created_by: str,
        comment: str | None = None,
    ) -> FileVersionModel:
        """
        Add a version row and flush it.

        Raises:
            IntegrityError: If (file_id, version_number) is already taken
        """
        version = FileVersionModel(
            file_id=file_id,
            version_number=version_number,
            storage_path=storage_path,
            file_size=file_size,
            created_by=created_by,
            comment=comment,
            created_at=datetime.now(UTC),
        )
        self.session.add(version)
        await self.session.flush()
        await self.session.refresh(version, attribute_names=["creator"])
        return version

    async def delete(self, version_id: int) -> bool:
        """
        Delete a version row.

        Returns:
            True if this call removed the row, False if it was already gone
        """
        result = await self.session.execute(delete(FileVersionModel).where(FileVersionModel.id == version_id))
        return result.rowcount > 0

    async def is_path_referenced(self, storage_path: str, exclude_version_id: int | None = None) -> bool:
        """Check whether any version other than ``exclude_version_id`` points at a path."""
        condition = FileVersionModel.storage_path == storage_path
        if exclude_version_id is not None:
            condition = condition & (FileVersionModel.id != exclude_version_id)

        result = await self.session.execute(select(exists().where(condition)))
        return bool(result.scalar())

    async def get_file_ids_exceeding(self, max_versions: int) -> list[int]:
        """Find IDs of files that have more than ``max_versions`` versions."""
        result = await self.session.execute(
            select(FileVersionModel.file_id)
            .group_by(FileVersionModel.file_id)
            .having(func.count(FileVersionModel.id) > max_versions)
            .order_by(FileVersionModel.file_id)
        )
        return list(result.scalars().all())
