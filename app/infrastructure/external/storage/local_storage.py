"""Local filesystem storage with path validation and atomic writes."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import aiofiles
import aiofiles.os

from app.core.config import StorageConfig
from app.infrastructure.exceptions import (
    InvalidStorageKeyError,
    StorageNotFoundError,
    StorageOperationError,
)
from app.infrastructure.external.storage.base import BaseStorage

logger = logging.getLogger(__name__)

DEFAULT_LOCAL_DIRNAME = ".local-storage"
BACKEND_LABEL = "Local"


class LocalFileStorage(BaseStorage):
    """Filesystem storage rooted at STORAGE_LOCAL_ROOT (default ./.local-storage).

    Keys are validated against the root. Directories are created on write.
    Writes use temp file + rename. Presigned uploads are not supported.
    """

    def __init__(self, config: StorageConfig | None = None) -> None:
        super().__init__(config)
        root = self.config.local_root or os.path.join(os.getcwd(), DEFAULT_LOCAL_DIRNAME)
        self.root = Path(root).resolve()

    def _get_full_path(self, key: str) -> Path:
        """Resolve and validate path under root. Raises InvalidStorageKeyError on traversal."""
        full_path = (self.root / key).resolve()
        try:
            full_path.relative_to(self.root)
        except ValueError as e:
            raise InvalidStorageKeyError(key) from e
        if full_path == self.root:
            raise InvalidStorageKeyError(key)
        return full_path

    async def save_file(self, content: bytes, key: str, content_type: str) -> str:
        target_path = self._get_full_path(key)
        temp_path: str | None = None
        try:
            target_path.parent.mkdir(parents=True, exist_ok=True)
            temp_fd, temp_path = tempfile.mkstemp(
                dir=target_path.parent,
                prefix=".tmp_",
                suffix=target_path.suffix,
            )
            os.close(temp_fd)
            async with aiofiles.open(temp_path, "wb") as f:
                await f.write(bytes(content))
            await aiofiles.os.replace(temp_path, target_path)
        except OSError as e:
            logger.error("Failed to save file to local storage: %s", e)
            raise StorageOperationError("upload", key, str(e), backend=BACKEND_LABEL) from e
        finally:
            if temp_path is not None and os.path.exists(temp_path):
                os.unlink(temp_path)

        logger.debug("Saved %d bytes to local storage: %s", len(content), key)
        return key

    async def download_file(self, key: str) -> bytes:
        file_path = self._get_full_path(key)
        try:
            async with aiofiles.open(file_path, "rb") as f:
                return await f.read()
        except FileNotFoundError as e:
            raise StorageNotFoundError(key) from e
        except OSError as e:
            logger.error("Failed to read file from local storage: %s", e)
            raise StorageOperationError("download", key, str(e), backend=BACKEND_LABEL) from e

    async def delete_file(self, key: str) -> bool:
        """Delete file and prune empty parent directories. False if not found."""
        file_path = self._get_full_path(key)
        try:
            await aiofiles.os.remove(file_path)
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error("Failed to delete file from local storage: %s", e)
            raise StorageOperationError("delete", key, str(e), backend=BACKEND_LABEL) from e

        parent = file_path.parent
        while parent != self.root:
            try:
                if any(parent.iterdir()):
                    break
                parent.rmdir()
            except OSError:
                break
            parent = parent.parent
        return True

    async def file_exists(self, key: str) -> bool:
        try:
            file_path = self._get_full_path(key)
        except InvalidStorageKeyError:
            return False
        return await aiofiles.os.path.isfile(file_path)

    def get_file_url(self, key: str, expires_in: int = 3600) -> str:
        return f"file://{self._get_full_path(key)}"
