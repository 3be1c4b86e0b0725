"""In-process storage for tests and ephemeral runs."""

from __future__ import annotations

from app.core.config import StorageConfig
from app.infrastructure.exceptions import StorageNotFoundError
from app.infrastructure.external.storage.base import BaseStorage


class MemoryStorage(BaseStorage):
    """Dict-backed storage. Bytes are copied on the way in and out."""

    def __init__(self, config: StorageConfig | None = None) -> None:
        super().__init__(config)
        self._files: dict[str, bytes] = {}

    def __len__(self) -> int:
        return len(self._files)

    async def save_file(self, content: bytes, key: str, content_type: str) -> str:
        self._files[key] = bytes(content)
        return key

    async def download_file(self, key: str) -> bytes:
        data = self._files.get(key)
        if data is None:
            raise StorageNotFoundError(key)
        return bytes(data)

    async def delete_file(self, key: str) -> bool:
        return self._files.pop(key, None) is not None

    async def file_exists(self, key: str) -> bool:
        return key in self._files

    def get_file_url(self, key: str, expires_in: int = 3600) -> str:
        return f"memory://{key}"

    async def presign_get(self, key: str, expires: int = 3600) -> str:
        return self.get_file_url(key)
