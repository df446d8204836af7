"""
Local filesystem storage backend.
"""
import asyncio
import contextlib
import shutil
import aiofiles
import aiofiles.os
import structlog
from pathlib import Path
from typing import Any, Dict, List, Optional

from storage.base import FileData, StorageBackend, StoredFile, StoredObject
from storage.exceptions import (
    InvalidFilenameError,
    NotFoundError,
    StorageUnavailableError,
)
from storage.keys import build_key, lookup_prefix, new_file_id, sanitize_filename

logger = structlog.get_logger()


class LocalStorageBackend(StorageBackend):
    """Local filesystem storage backend."""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize local storage backend.

        Args:
            config: Configuration with:
                - base_path: Root directory for storage
                - public_base_url: Prefix for retrieval URLs (optional)
                - name: Backend name (optional)
        """
        super().__init__(config)
        self.base_path = Path(config.get("base_path", "./data/media")).resolve()
        self.public_base_url = (config.get("public_base_url") or "").rstrip("/")

        # Ensure base path exists
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _resolve_path(self, key: str) -> Path:
        """
        Resolve a key to a path directly under the storage root.

        Raises:
            InvalidFilenameError: If the key would land anywhere else
        """
        full_path = (self.base_path / key).resolve()

        if full_path.parent != self.base_path:
            raise InvalidFilenameError(f"Key '{key}' would escape storage directory")

        return full_path

    def url_for(self, key: str) -> str:
        return f"{self.public_base_url}/files/{self.quote_key(key)}"

    async def _find(self, file_id: str) -> Optional[Path]:
        """Linear scan of the root for the first key belonging to ``file_id``."""
        if not await aiofiles.os.path.isdir(self.base_path):
            return None

        prefix = lookup_prefix(file_id)
        for entry in await aiofiles.os.listdir(self.base_path):
            if entry.startswith(prefix):
                path = self.base_path / entry
                if await aiofiles.os.path.isfile(path):
                    return path
        return None

    async def put(self, filename: str, data: FileData) -> StoredFile:
        """Write data to a new file under the storage root."""
        filename = sanitize_filename(filename)
        file_id = new_file_id()
        key = build_key(file_id, filename)
        full_path = self._resolve_path(key)

        bytes_written = 0
        completed = False
        try:
            async with aiofiles.open(full_path, "wb") as f:
                if isinstance(data, bytes):
                    await f.write(data)
                    bytes_written = len(data)
                else:
                    async for chunk in data:
                        await f.write(chunk)
                        bytes_written += len(chunk)
            completed = True
        except OSError as e:
            logger.error("Failed to store file", key=key, error=str(e))
            raise StorageUnavailableError("failed to store file") from e
        finally:
            # Interrupted writes (I/O errors, cancellation) leave no partial file
            if not completed:
                with contextlib.suppress(FileNotFoundError):
                    await aiofiles.os.remove(full_path)

        logger.info("Stored file", file_id=file_id, key=key, size=bytes_written)
        return self.describe(key)

    async def list(self) -> List[StoredFile]:
        """List regular files directly under the storage root."""
        if not await aiofiles.os.path.isdir(self.base_path):
            return []

        files = []
        for entry in await aiofiles.os.listdir(self.base_path):
            if await aiofiles.os.path.isfile(self.base_path / entry):
                files.append(self.describe(entry))

        return files

    async def get(self, file_id: str) -> StoredObject:
        """Read a file by id."""
        path = await self._find(file_id)
        if path is None:
            raise NotFoundError("file not found")

        try:
            async with aiofiles.open(path, "rb") as f:
                content = await f.read()
        except FileNotFoundError as e:
            # Deleted between the scan and the read
            raise NotFoundError("file not found") from e
        except OSError as e:
            logger.error("Failed to read file", key=path.name, error=str(e))
            raise StorageUnavailableError("failed to read file") from e

        return StoredObject(file=self.describe(path.name), content=content)

    async def delete(self, file_id: str) -> bool:
        """Delete a file by id."""
        path = await self._find(file_id)
        if path is None:
            return False

        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to delete file", key=path.name, error=str(e))
            raise StorageUnavailableError("failed to delete file") from e

        logger.info("Deleted file", file_id=file_id, key=path.name)
        return True

    async def get_status(self) -> Dict[str, Any]:
        """Get backend status."""
        # Get disk usage
        try:
            usage = await asyncio.to_thread(shutil.disk_usage, self.base_path)
            disk_info = {
                "total": usage.total,
                "used": usage.used,
                "free": usage.free,
                "percent_used": round((usage.used / usage.total) * 100, 2),
            }
        except OSError:
            disk_info = {"error": "Unable to get disk usage"}

        return {
            "name": self.name,
            "type": "filesystem",
            "base_path": str(self.base_path),
            "available": self.base_path.exists(),
            "disk": disk_info,
        }
