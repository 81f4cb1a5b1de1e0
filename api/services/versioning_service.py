"""File versioning service.

Orchestrates version creation, listing, restore, deletion and the retention
sweep across three collaborators that fail independently:

- the version catalog (SQLAlchemy session owned by this service),
- the quota ledger (``QuotaService``, every call commits on its own),
- the content store (``StorageBackend``, atomic per path only).

Multi-step flows are sagas with one compensating action per step:

    create:  reserve -> [snapshot -> put -> repoint file -> commit] -> confirm
             failure inside [...] rolls back the catalog, cancels the
             reservation and discards a blob that was already written
    delete:  [lock file -> delete row -> check references -> commit]
             -> release quota -> delete blob (only when unreferenced)

References to a blob are committed only after the blob exists, and a blob is
deleted only after the last reference is gone, so a crash between steps can
leave an orphaned blob or reservation but never a dangling reference.
"""

import asyncio
import functools
from collections.abc import Awaitable, Callable
from typing import TypeVar

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from api.dependencies import get_async_session_maker
from api.repositories.file_repos import FileRepository, FileVersionRepository
from api.schemas.version import (
    FileVersionResponse,
    VersionCreateParams,
    VersionDeleteResponse,
    VersionRestoreResponse,
)
from api.services.activity_service import ActivityService
from api.services.quota_service import QuotaService
from api.shared.enums import ActivityType
from api.shared.exceptions import (
    APIException,
    BadRequestError,
    ConflictError,
    ForbiddenError,
    InternalError,
    NotFoundError,
    QuotaExceededError,
    StorageReadError,
    StorageWriteError,
)
from config.settings import get_settings
from database.models import FileModel, FileVersionModel
from file_storage.backends.base import StorageBackend, StorageBackendError
from file_storage.factory import get_storage_backend
from file_storage.path_builder import get_path_builder
from logger import format_details, get_logger, short_user_id

logger = get_logger()

T = TypeVar("T")


def _translate_errors(func):
    """Wrap collaborator errors that escaped a public operation into InternalError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except APIException:
            raise
        except SQLAlchemyError as e:
            logger.error(f"Database error in {func.__name__}: {e}")
            raise InternalError("Database operation failed") from e
        except StorageBackendError as e:
            logger.error(f"Storage error in {func.__name__}: {e}")
            raise InternalError("Storage operation failed") from e

    return wrapper


class VersioningService:
    """Versioned, quota-accounted file content."""

    def __init__(
        self,
        session: AsyncSession,
        storage: StorageBackend,
        quota: QuotaService,
        activity: ActivityService,
    ):
        self.session = session
        self.storage = storage
        self.quota = quota
        self.activity = activity
        self.file_repo = FileRepository(session)
        self.version_repo = FileVersionRepository(session)
        self.path_builder = get_path_builder()
        self.settings = get_settings()

    # ========================================
    # CREATE
    # ========================================

    @_translate_errors
    async def create_version(
        self,
        file_id: int,
        content: bytes,
        size_bytes: int,
        comment: str | None,
        user_id: str,
    ) -> FileVersionResponse:
        """Snapshot the current content of a file as a version and replace it with ``content``."""
        params = self._validate_create_params(content, size_bytes, comment)
        file = await self._get_owned_file(file_id, user_id)
        owner_id = file.user_id
        filename = file.filename
        size = params.size_bytes

        with logger.contextualize(file_id=file_id, user_id=short_user_id(user_id)):
            if not await self.quota.reserve(owner_id, size):
                raise QuotaExceededError(size)

            new_path = None
            try:
                version = await self._with_number_retry(
                    file_id, functools.partial(self._snapshot_for_write, file_id, user_id, params.comment)
                )
                replaced_path = version.storage_path
                new_path = await self._put_content(owner_id, filename, content, size)
                # Snapshot must describe exactly the content being replaced
                if not await self.file_repo.repoint(file_id, replaced_path, new_path, size):
                    raise ConflictError(f"File {file_id} was modified concurrently, retry the upload")
                await self.session.commit()
            except Exception as e:
                await self._rollback()
                await self._cancel_reservation(owner_id, size)
                if new_path is not None:
                    await self._discard_blob(new_path)
                if isinstance(e, APIException):
                    raise
                logger.error(f"Failed to create version: {e}")
                raise InternalError("Failed to create version") from e

            try:
                await self.quota.confirm(owner_id, size)
            except Exception as e:
                # Blob and version already exist; ledger drift is reconciled separately
                logger.warning(f"Quota confirmation failed after write | {format_details(bytes=size, error=e)}")

            logger.info(
                f"Version created | "
                f"{format_details(number=version.version_number, size=size, path=new_path)}"
            )

        await self.activity.record(
            user_id,
            ActivityType.CREATE_VERSION,
            file_id,
            f"Created new version of file: {filename}",
        )
        return self._to_response(version)

    # ========================================
    # READ
    # ========================================

    @_translate_errors
    async def list_versions(self, file_id: int, user_id: str) -> list[FileVersionResponse]:
        """All versions of a file, newest first."""
        await self._get_owned_file(file_id, user_id)
        versions = await self.version_repo.list_by_file(file_id, newest_first=True)
        return [self._to_response(version) for version in versions]

    @_translate_errors
    async def get_version(self, version_id: int, user_id: str) -> FileVersionResponse:
        """Single version descriptor."""
        version = await self._get_owned_version(version_id, user_id, action="access")
        return self._to_response(version)

    @_translate_errors
    async def read_version_content(self, version_id: int, user_id: str) -> bytes:
        """Bytes stored for a version."""
        version = await self._get_owned_version(version_id, user_id, action="access")
        try:
            return await self.storage.get(version.storage_path)
        except FileNotFoundError as e:
            logger.error(f"Blob missing for version {version_id}: path={version.storage_path}")
            raise StorageReadError(f"Content of version {version_id} is unavailable") from e
        except (StorageBackendError, OSError) as e:
            raise StorageReadError(f"Failed to read content of version {version_id}: {e}") from e

    # ========================================
    # RESTORE
    # ========================================

    @_translate_errors
    async def restore_version(self, file_id: int, version_id: int, user_id: str) -> VersionRestoreResponse:
        """Point a file back at an earlier version, snapshotting the current state first.

        No bytes are written and the quota ledger is not touched: both the
        snapshot and the restored version keep referencing existing blobs.
        """
        with logger.contextualize(file_id=file_id, version_id=version_id, user_id=short_user_id(user_id)):
            try:
                snapshot, file, target = await self._with_number_retry(
                    file_id, functools.partial(self._snapshot_for_restore, file_id, version_id, user_id)
                )
                target_number = target.version_number
                filename = file.filename

                restored = await self.file_repo.repoint(
                    file_id, snapshot.storage_path, target.storage_path, target.file_size
                )
                if not restored:
                    raise ConflictError(f"File {file_id} was modified concurrently")
                await self.session.commit()
            except Exception as e:
                await self._rollback()
                if isinstance(e, APIException):
                    raise
                logger.error(f"Failed to restore version: {e}")
                raise InternalError("Failed to restore version") from e

            logger.info(f"File restored | {format_details(to=target_number, snapshot=snapshot.version_number)}")

        await self.activity.record(
            user_id,
            ActivityType.RESTORE_VERSION,
            file_id,
            f"Restored file to version {target_number}: {filename}",
        )
        return VersionRestoreResponse(
            success=True,
            message=f"File restored to version {target_number}",
            restored_version_number=target_number,
            snapshot=self._to_response(snapshot),
        )

    # ========================================
    # DELETE
    # ========================================

    @_translate_errors
    async def delete_version(self, version_id: int, user_id: str) -> VersionDeleteResponse:
        """Delete a version; its blob goes away only if nothing else references it."""
        version = await self._get_owned_version(version_id, user_id, action="delete")
        file_id = version.file_id
        version_number = version.version_number
        filename = version.file.filename

        with logger.contextualize(file_id=file_id, version_id=version_id, user_id=short_user_id(user_id)):
            released = await self._remove_version(version_id, file_id, version.storage_path, version.file_size)

        await self.activity.record(
            user_id,
            ActivityType.DELETE_VERSION,
            file_id,
            f"Deleted version {version_number} of file: {filename}",
        )
        return VersionDeleteResponse(
            success=True,
            message="Version deleted successfully",
            version_id=version_id,
            storage_released=released,
        )

    # ========================================
    # RETENTION SWEEP
    # ========================================

    @_translate_errors
    async def cleanup_old_versions(self, max_versions_per_file: int) -> int:
        """Delete the oldest versions of every file that has more than ``max_versions_per_file``.

        Best effort: a failing version is logged and skipped. Running again
        with the same threshold deletes nothing further.
        """
        if max_versions_per_file < 0:
            raise BadRequestError("max_versions_per_file must be >= 0")

        file_ids = await self.version_repo.get_file_ids_exceeding(max_versions_per_file)
        deleted_count = 0

        for file_id in file_ids:
            versions = await self.version_repo.list_by_file(file_id, newest_first=False)
            excess = len(versions) - max_versions_per_file
            # Plain values only: a rollback below expires loaded ORM objects
            candidates = [(v.id, v.storage_path, v.file_size) for v in versions[: max(excess, 0)]]

            for version_id, storage_path, file_size in candidates:
                with logger.contextualize(file_id=file_id, version_id=version_id):
                    try:
                        await self._remove_version(version_id, file_id, storage_path, file_size)
                        deleted_count += 1
                    except NotFoundError:
                        logger.info(f"Version {version_id} already removed, skipping")
                    except Exception as e:
                        logger.error(f"Error deleting version {version_id}: {e}")

        logger.info(f"Cleaned up {deleted_count} old versions")
        return deleted_count

    # ========================================
    # HELPERS
    # ========================================

    def _validate_create_params(self, content: bytes, size_bytes: int, comment: str | None) -> VersionCreateParams:
        try:
            params = VersionCreateParams(size_bytes=size_bytes, comment=comment)
        except ValidationError as e:
            raise BadRequestError(f"Invalid version parameters: {e.errors()[0]['msg']}") from e

        if params.size_bytes != len(content):
            raise BadRequestError(f"size_bytes={params.size_bytes} does not match content length {len(content)}")

        max_bytes = self.settings.storage.max_upload_size_mb * 1024 * 1024
        if params.size_bytes > max_bytes:
            raise BadRequestError(f"Version exceeds max size of {self.settings.storage.max_upload_size_mb} MB")
        return params

    async def _get_owned_file(self, file_id: int, user_id: str, for_update: bool = False) -> FileModel:
        file = await self.file_repo.get_by_id(file_id, for_update=for_update)
        if file is None:
            raise NotFoundError("File", file_id)
        if file.user_id != user_id:
            raise ForbiddenError("You don't have permission to access this file")
        return file

    async def _get_owned_version(self, version_id: int, user_id: str, action: str) -> FileVersionModel:
        version = await self.version_repo.get_by_id(version_id)
        if version is None:
            raise NotFoundError("Version", version_id)
        if version.file.user_id != user_id:
            raise ForbiddenError(f"You don't have permission to {action} this version")
        return version

    async def _with_number_retry(self, file_id: int, attempt: Callable[[], Awaitable[T]]) -> T:
        """Run a snapshot ``attempt``, retrying once if its version number was taken.

        Version numbers are claimed through the (file_id, version_number)
        unique constraint. Each attempt re-reads everything it depends on,
        since the rollback after a collision discards the transaction and the
        competing writer may have changed the file.
        """
        try:
            return await attempt()
        except IntegrityError:
            await self._rollback()
            logger.warning(f"Version number collision, retrying | {format_details(file=file_id)}")

        try:
            return await attempt()
        except IntegrityError as e:
            await self._rollback()
            raise ConflictError(f"Concurrent update of file {file_id}: version number already taken") from e

    async def _snapshot_for_write(self, file_id: int, user_id: str, comment: str | None) -> FileVersionModel:
        file = await self.file_repo.get_by_id(file_id)
        if file is None:
            raise NotFoundError("File", file_id)
        return await self._insert_snapshot(file, user_id, comment)

    async def _snapshot_for_restore(
        self, file_id: int, version_id: int, user_id: str
    ) -> tuple[FileVersionModel, FileModel, FileVersionModel]:
        # Row lock keeps a concurrent delete of the target version out until commit
        file = await self._get_owned_file(file_id, user_id, for_update=True)
        target = await self.version_repo.get_by_id(version_id)
        if target is None:
            raise NotFoundError("Version", version_id)
        if target.file_id != file.id:
            raise BadRequestError("Version does not belong to specified file")

        snapshot = await self._insert_snapshot(
            file, user_id, f"Automatic version before restoring to version {target.version_number}"
        )
        return snapshot, file, target

    async def _insert_snapshot(self, file: FileModel, user_id: str, comment: str | None) -> FileVersionModel:
        """Record the file's current path/size as its next version.

        Raises:
            IntegrityError: If the number was claimed by a concurrent writer
        """
        next_number = await self.version_repo.get_next_version_number(file.id)
        return await self.version_repo.create(
            file_id=file.id,
            version_number=next_number,
            storage_path=file.storage_path,
            file_size=file.file_size,
            created_by=user_id,
            comment=comment,
        )

    async def _put_content(self, owner_id: str, filename: str, content: bytes, size: int) -> str:
        prefix = str(self.path_builder.user_files_dir(owner_id))
        suffix = self.path_builder.suffix_for(filename)
        timeout = self.settings.storage.write_timeout_seconds
        try:
            return await asyncio.wait_for(
                self.storage.put(content, size, prefix=prefix, suffix=suffix),
                timeout=timeout,
            )
        except TimeoutError as e:
            raise StorageWriteError(f"Timed out writing new content after {timeout:g}s") from e
        except (StorageBackendError, OSError) as e:
            raise StorageWriteError(f"Failed to store new content: {e}") from e

    async def _remove_version(self, version_id: int, file_id: int, storage_path: str, file_size: int) -> bool:
        """Delete a version row and garbage-collect its blob if it was the last reference.

        Returns:
            True if quota and blob were released, False if the blob is still referenced
        """
        try:
            # Serializes deletions/restores per file so two siblings sharing a
            # path can't both see the other as the remaining reference
            file = await self.file_repo.get_by_id(file_id, include_deleted=True, for_update=True)
            if file is None or not await self.version_repo.delete(version_id):
                raise NotFoundError("Version", version_id)
            owner_id = file.user_id

            referenced = await self.version_repo.is_path_referenced(
                storage_path, exclude_version_id=version_id
            ) or await self.file_repo.is_path_referenced(storage_path)
            await self.session.commit()
        except Exception:
            await self._rollback()
            raise

        if referenced:
            logger.info(f"Version deleted, content still referenced | {format_details(path=storage_path)}")
            return False

        try:
            await self.quota.release(owner_id, file_size)
        except Exception as e:
            logger.error(
                f"Quota release failed for deleted version | "
                f"{format_details(user=short_user_id(owner_id), bytes=file_size, error=e)}"
            )

        await self._discard_blob(storage_path)
        logger.info(f"Version deleted, content released | {format_details(path=storage_path, bytes=file_size)}")
        return True

    async def _cancel_reservation(self, owner_id: str, size: int) -> None:
        try:
            await self.quota.cancel_reservation(owner_id, size)
        except Exception as e:
            logger.error(
                f"Failed to cancel quota reservation | "
                f"{format_details(user=short_user_id(owner_id), bytes=size, error=e)}"
            )

    async def _discard_blob(self, storage_path: str) -> None:
        try:
            await self.storage.delete(storage_path)
        except Exception as e:
            logger.warning(f"Failed to delete blob, left orphaned | {format_details(path=storage_path, error=e)}")

    async def _rollback(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Rollback failed: {e}")

    def _to_response(self, version: FileVersionModel) -> FileVersionResponse:
        creator = version.creator
        return FileVersionResponse(
            id=version.id,
            file_id=version.file_id,
            version_number=version.version_number,
            file_size=version.file_size,
            created_at=version.created_at,
            created_by_id=version.created_by,
            created_by=(creator.full_name or creator.email) if creator else None,
            comment=version.comment,
            download_url=f"{self.settings.app.api_prefix}/files/versions/{version.id}/download",
        )


def build_versioning_service(
    session: AsyncSession,
    session_maker: async_sessionmaker[AsyncSession] | None = None,
    storage: StorageBackend | None = None,
) -> VersioningService:
    """Wire a VersioningService with the configured storage backend and ledger."""
    session_maker = session_maker or get_async_session_maker()
    return VersioningService(
        session=session,
        storage=storage or get_storage_backend(),
        quota=QuotaService(session_maker),
        activity=ActivityService(session_maker),
    )
