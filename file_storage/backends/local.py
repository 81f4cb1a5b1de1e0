"""Local filesystem storage backend"""

import uuid
from pathlib import Path

import aiofiles
import aiofiles.os

from file_storage.backends.base import StorageBackend, StorageBackendError, StorageCapacityExceededError
from file_storage.path_builder import StoragePathBuilder, get_path_builder
from logger import get_logger

logger = get_logger(__name__)


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend"""

    def __init__(
        self,
        base_path: Path | str = "storage",
        max_size_gb: int | None = None,
        path_builder: StoragePathBuilder | None = None,
    ):
        self.base = Path(base_path)
        self.max_size_gb = max_size_gb
        self.path_builder = path_builder or get_path_builder()
        self.base.mkdir(parents=True, exist_ok=True)

    async def put(self, content: bytes, size_hint: int, prefix: str = "", suffix: str = "") -> str:
        if self.max_size_gb:
            current_size = self._get_total_size()
            content_size = max(size_hint, len(content))
            max_bytes = self.max_size_gb * (1024**3)

            if current_size + content_size > max_bytes:
                raise StorageCapacityExceededError(
                    f"Capacity exceeded: {current_size / (1024**3):.2f}GB + "
                    f"{content_size / (1024**3):.2f}GB > {self.max_size_gb}GB"
                )

        path = self.path_builder.new_blob_path(prefix, suffix)
        full_path = self._resolve(path)
        if full_path.exists():
            raise StorageBackendError(f"Refusing to overwrite existing blob: {path}")

        full_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = full_path.with_name(f".{full_path.name}.{uuid.uuid4().hex[:8]}.part")

        # Write to a temp file and rename so a blob is never visible half-written
        try:
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(content)
            await aiofiles.os.rename(tmp_path, full_path)
        except OSError as e:
            if tmp_path.exists():
                tmp_path.unlink()
            raise StorageBackendError(f"Failed to write blob {path}: {e}") from e

        logger.debug(f"Blob stored: path={path} | size={len(content)}")
        return path

    async def get(self, path: str) -> bytes:
        full_path = self._resolve(path)
        if not full_path.exists():
            raise FileNotFoundError(f"File not found: {full_path}")

        async with aiofiles.open(full_path, "rb") as f:
            return await f.read()

    async def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    async def delete(self, path: str) -> bool:
        full_path = self._resolve(path)
        if not full_path.exists():
            return False

        try:
            await aiofiles.os.remove(full_path)
        except FileNotFoundError:
            # Removed concurrently, still idempotent
            return False
        return True

    async def get_size(self, path: str) -> int:
        full_path = self._resolve(path)
        if not full_path.exists():
            raise FileNotFoundError(f"File not found: {full_path}")

        return full_path.stat().st_size

    def _resolve(self, path: str) -> Path:
        """Map a relative storage path onto the base directory."""
        base = self.base.resolve()
        full_path = (base / path).resolve()
        if full_path != base and base not in full_path.parents:
            raise StorageBackendError(f"Storage path escapes storage root: {path}")
        return full_path

    def _get_total_size(self) -> int:
        """Calculate total storage size (used for capacity checks)"""
        return sum(
            file_path.stat().st_size
            for file_path in self.base.rglob("*")
            if file_path.is_file() and not self._should_skip_file(file_path)
        )

    def _should_skip_file(self, file_path: Path) -> bool:
        """Check if file should be skipped during size calculation"""
        try:
            file_path.stat()
            return False
        except (OSError, FileNotFoundError):
            return True
