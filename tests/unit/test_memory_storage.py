"""Tests for MemoryStorage and the shared BaseStorage behaviour."""

import re

import pytest

from app.core.config import StorageConfig
from app.infrastructure.exceptions import (
    FileTooLargeError,
    MissingContentTypeError,
    StorageNotFoundError,
    StorageNotSupportedError,
)
from app.infrastructure.external.storage.base import get_file_extension, normalize_prefix
from app.infrastructure.external.storage.memory_storage import MemoryStorage

UUID_RE = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


@pytest.fixture
def storage(storage_config: StorageConfig) -> MemoryStorage:
    return MemoryStorage(storage_config)


class TestMemoryStorageOperations:
    """save/download/delete/exists against the in-process dict."""

    async def test_round_trip(self, storage: MemoryStorage) -> None:
        key = await storage.save_file(b"abc", "uploads/a.bin", "application/octet-stream")
        assert key == "uploads/a.bin"
        assert await storage.download_file(key) == b"abc"
        assert len(storage) == 1

    async def test_stored_bytes_are_copied(self, storage: MemoryStorage) -> None:
        data = bytearray(b"abc")
        await storage.save_file(data, "k", "text/plain")  # type: ignore[arg-type]
        data[0] = ord("z")
        assert await storage.download_file("k") == b"abc"

    async def test_download_missing_raises(self, storage: MemoryStorage) -> None:
        with pytest.raises(StorageNotFoundError, match="File not found: nope"):
            await storage.download_file("nope")

    async def test_delete(self, storage: MemoryStorage) -> None:
        await storage.save_file(b"x", "k", "text/plain")
        assert await storage.delete_file("k") is True
        assert await storage.delete_file("k") is False
        assert await storage.file_exists("k") is False

    async def test_urls(self, storage: MemoryStorage) -> None:
        assert storage.get_file_url("uploads/a.png") == "memory://uploads/a.png"
        assert await storage.presign_get("uploads/a.png") == "memory://uploads/a.png"

    async def test_presigned_uploads_not_supported(self, storage: MemoryStorage) -> None:
        with pytest.raises(StorageNotSupportedError):
            await storage.presign_put("k", "image/png")
        with pytest.raises(StorageNotSupportedError):
            await storage.presign_post("k", "image/png")


class TestValidateFile:
    """validate_file checks content type first, then size."""

    def test_accepts_file_at_limit(self, storage: MemoryStorage) -> None:
        storage.validate_file("a.png", "image/png", 1024 * 1024)

    def test_rejects_oversize(self, storage: MemoryStorage) -> None:
        with pytest.raises(FileTooLargeError) as exc_info:
            storage.validate_file("a.png", "image/png", 1024 * 1024 + 1)
        assert exc_info.value.error_code == "FILE_TOO_LARGE"
        assert exc_info.value.details["max_size"] == 1024 * 1024

    def test_rejects_missing_content_type(self, storage: MemoryStorage) -> None:
        with pytest.raises(MissingContentTypeError, match="Content-Type is required for a.png"):
            storage.validate_file("a.png", "", 10)

    def test_content_type_checked_before_size(self, storage: MemoryStorage) -> None:
        with pytest.raises(MissingContentTypeError):
            storage.validate_file("a.png", "", 10 * 1024 * 1024)


class TestGenerateFileKey:
    def test_default_prefix_is_uploads(self, storage: MemoryStorage) -> None:
        key = storage.generate_file_key("photo.JPG")
        assert re.fullmatch(rf"uploads/{UUID_RE}\.JPG", key)

    def test_custom_prefix_is_normalized(self, storage: MemoryStorage) -> None:
        key = storage.generate_file_key("logo.png", "/certificates/logos/")
        assert re.fullmatch(rf"certificates/logos/{UUID_RE}\.png", key)

    def test_base_prefix_from_config(self) -> None:
        storage = MemoryStorage(StorageConfig(storage_base_prefix="/instruments/"))
        assert storage.generate_file_key("a.webp").startswith("instruments/")

    def test_no_extension(self, storage: MemoryStorage) -> None:
        key = storage.generate_file_key("README")
        assert re.fullmatch(rf"uploads/{UUID_RE}", key)

    def test_prefix_of_only_slashes_gives_bare_name(self, storage: MemoryStorage) -> None:
        key = storage.generate_file_key("a.png", "///")
        assert re.fullmatch(rf"{UUID_RE}\.png", key)

    def test_keys_are_unique(self, storage: MemoryStorage) -> None:
        keys = {storage.generate_file_key("a.png") for _ in range(50)}
        assert len(keys) == 50


@pytest.mark.parametrize(
    ("filename", "expected"),
    [
        ("photo.jpg", "jpg"),
        ("archive.tar.gz", "gz"),
        ("noext", ""),
        (".env", ""),
        ("trailing.", ""),
    ],
)
def test_get_file_extension(filename: str, expected: str) -> None:
    assert get_file_extension(filename) == expected


def test_normalize_prefix() -> None:
    assert normalize_prefix("//a/b//") == "a/b"
    assert normalize_prefix("") == ""
