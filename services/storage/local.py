"""
Local file system store for uploads.

Used when remote storage is not configured or every account failed.
Files land flat in one directory and are addressed as /uploads/{filename}.
"""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from core.exceptions import StorageError

from .base import LOCAL_LOCATOR_PREFIX

logger = logging.getLogger(__name__)


class LocalBlobStore:
    """Local disk store for fallback uploads."""

    def __init__(self, base_path: str | Path):
        """
        Initialize local store.

        Args:
            base_path: Directory that holds uploaded files
        """
        self.base_path = Path(base_path)

        # Ensure base directory exists
        self.base_path.mkdir(parents=True, exist_ok=True)

    @property
    def name(self) -> str:
        """Backend name."""
        return "local"

    def _get_full_path(self, filename: str) -> Path | None:
        """Get full file path, or None if filename would escape the base directory."""
        if not filename or "/" in filename or "\\" in filename or filename in (".", ".."):
            return None
        return self.base_path / filename

    @staticmethod
    def to_locator(filename: str) -> str:
        return f"{LOCAL_LOCATOR_PREFIX}{filename}"

    @staticmethod
    def filename_from_locator(locator: str) -> str | None:
        if not locator.startswith(LOCAL_LOCATOR_PREFIX):
            return None
        return locator[len(LOCAL_LOCATOR_PREFIX):] or None

    async def save(self, filename: str, data: bytes) -> str:
        """
        Write a file to local disk.

        Args:
            filename: Stored file name
            data: Raw bytes to store

        Returns:
            Local locator for the file

        Raises:
            StorageError: If the file cannot be written
        """
        file_path = self._get_full_path(filename)
        if file_path is None:
            raise StorageError(message="Invalid file name", details={"filename": filename})

        try:
            await aiofiles.os.makedirs(self.base_path, exist_ok=True)
            async with aiofiles.open(file_path, "wb") as f:
                await f.write(data)
        except OSError as e:
            logger.error(f"Failed to write {filename} to local storage: {e}")
            raise StorageError(
                message="Failed to save file to local storage",
                details={"filename": filename},
            ) from e

        logger.debug(f"Saved file to local storage: {filename}")
        return self.to_locator(filename)

    async def load(self, filename: str) -> bytes | None:
        """
        Read a file from local disk.

        Returns:
            Raw bytes or None if not found
        """
        file_path = self._get_full_path(filename)
        if file_path is None or not file_path.is_file():
            return None

        async with aiofiles.open(file_path, "rb") as f:
            return await f.read()

    async def delete(self, filename: str) -> bool:
        """
        Delete a file from local disk.

        Returns:
            True if deleted successfully
        """
        file_path = self._get_full_path(filename)
        if file_path is None or not file_path.exists():
            return False

        try:
            await aiofiles.os.remove(file_path)
            logger.debug(f"Deleted file from local storage: {filename}")
            return True
        except OSError as e:
            logger.error(f"Failed to delete file {filename}: {e}")
            return False

    async def exists(self, filename: str) -> bool:
        file_path = self._get_full_path(filename)
        return file_path is not None and file_path.is_file()
