"""Behaviour shared by every storage backend: validation, key generation, capability defaults."""

from __future__ import annotations

import uuid

from app.core.config import StorageConfig, get_storage_config
from app.infrastructure.exceptions import (
    FileTooLargeError,
    MissingContentTypeError,
    StorageNotSupportedError,
)
from app.infrastructure.external.storage.protocol import PresignedPost

DEFAULT_KEY_PREFIX = "uploads"


def normalize_prefix(prefix: str) -> str:
    """Strip leading and trailing slashes."""
    return prefix.strip("/")


def get_file_extension(filename: str) -> str:
    """Text after the last dot, verbatim. Dotfiles ('.env') have no extension."""
    index = filename.rfind(".")
    return filename[index + 1 :] if index > 0 else ""


class BaseStorage:
    """Common part of the storage backends.

    Presign operations are unsupported unless a backend overrides them.
    """

    def __init__(self, config: StorageConfig | None = None) -> None:
        self.config = config or get_storage_config()
        self.base_prefix = normalize_prefix(
            self.config.storage_base_prefix or DEFAULT_KEY_PREFIX
        )

    @property
    def backend_name(self) -> str:
        return type(self).__name__

    def validate_file(self, filename: str, content_type: str, size: int) -> None:
        """Reject uploads without a content type or above max_file_size_bytes."""
        if not content_type:
            raise MissingContentTypeError(filename or None)
        if size > self.config.max_file_size_bytes:
            raise FileTooLargeError(size, self.config.max_file_size_bytes)

    def generate_file_key(self, original_filename: str, prefix: str | None = None) -> str:
        file_id = str(uuid.uuid4())
        ext = get_file_extension(original_filename)
        file_name = f"{file_id}.{ext}" if ext else file_id
        safe_prefix = normalize_prefix(prefix or self.base_prefix)
        if not safe_prefix:
            return file_name
        return f"{safe_prefix}/{file_name}"

    async def presign_put(self, key: str, content_type: str, expires: int = 3600) -> str:
        raise StorageNotSupportedError("presign_put", self.backend_name)

    async def presign_post(
        self,
        key: str,
        content_type: str,
        max_mb: float | None = 10,
        expires: int = 900,
    ) -> PresignedPost:
        raise StorageNotSupportedError("presign_post", self.backend_name)

    async def presign_get(self, key: str, expires: int = 3600) -> str:
        raise StorageNotSupportedError("presign_get", self.backend_name)
