"""Storage service protocol (DIP). Implementations: LocalFileStorage, MemoryStorage, S3Storage."""

from dataclasses import dataclass, field
from typing import Protocol


@dataclass(frozen=True)
class PresignedPost:
    """Form-post descriptor for direct browser uploads."""

    url: str
    fields: dict[str, str] = field(default_factory=dict)


class StorageProtocol(Protocol):
    """Protocol for file storage backends (local filesystem, memory, S3)."""

    def validate_file(self, filename: str, content_type: str, size: int) -> None:
        """Raise a ValidationException if the upload is not acceptable."""
        ...

    def generate_file_key(self, original_filename: str, prefix: str | None = None) -> str:
        """Return a new unique key '{prefix}/{uuid}.{ext}'."""
        ...

    async def save_file(self, content: bytes, key: str, content_type: str) -> str:
        """Store content under key. Returns the key the content is stored under."""
        ...

    async def download_file(self, key: str) -> bytes:
        """Return stored bytes. Raises StorageNotFoundError if missing."""
        ...

    async def delete_file(self, key: str) -> bool:
        """Delete file. Returns True if deleted, False if not found."""
        ...

    async def file_exists(self, key: str) -> bool:
        """Return True if file exists."""
        ...

    def get_file_url(self, key: str, expires_in: int = 3600) -> str:
        """Return a URL (not signed) addressing the file."""
        ...

    async def presign_put(self, key: str, content_type: str, expires: int = 3600) -> str:
        """Return a time-limited URL for a direct PUT upload."""
        ...

    async def presign_post(
        self,
        key: str,
        content_type: str,
        max_mb: float | None = 10,
        expires: int = 900,
    ) -> PresignedPost:
        """Return a form-post descriptor bounded by a content-length-range."""
        ...

    async def presign_get(self, key: str, expires: int = 3600) -> str:
        """Return a time-limited read URL."""
        ...
