"""Pytest configuration and fixtures for the instrument dealer storage service.

APP_ENV=test is set before app.main is imported so the factory picks the
in-memory backend. Storage variables are cleared for every test; tests that
need a backend set them through monkeypatch.
"""

import os

import pytest
from httpx import ASGITransport, AsyncClient

os.environ["APP_ENV"] = "test"

from app.core.config import StorageConfig  # noqa: E402
from app.core.limiter import limiter  # noqa: E402
from app.main import app  # noqa: E402

STORAGE_ENV_VARS = (
    "STORAGE_TYPE",
    "S3_BUCKET_NAME",
    "S3_REGION",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_ENDPOINT_URL",
    "S3_ADDRESSING_STYLE",
    "KMS_KEY_ID",
    "STORAGE_BASE_PREFIX",
    "STORAGE_LOCAL_ROOT",
    "UPLOAD_MAX_FILE_SIZE_MB",
    "NODE_ENV",
)

# Smallest valid-looking image payloads (signature plus padding).
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 60
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 60
WEBP_BYTES = b"RIFF\x24\x00\x00\x00WEBPVP8 " + b"\x00" * 48


@pytest.fixture(autouse=True)
def storage_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Clean storage environment: no storage variables, APP_ENV=test."""
    for name in STORAGE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("APP_ENV", "test")
    return monkeypatch


@pytest.fixture
def storage_config() -> StorageConfig:
    """Config for the in-memory backend with a 1 MiB upload limit."""
    return StorageConfig(app_env="test", max_file_size_bytes=1024 * 1024)


@pytest.fixture
def s3_config() -> StorageConfig:
    """S3 config against real AWS endpoints (no custom endpoint)."""
    return StorageConfig(
        storage_type="s3",
        s3_bucket="dealer-uploads",
        s3_region="eu-west-1",
        app_env="production",
    )


@pytest.fixture
async def client() -> AsyncClient:
    """Async HTTP client against the FastAPI app (ASGI).

    The storage container and rate limiter are reset around each test.
    """
    app.state.storage.reset_storage()
    limiter.reset()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.storage.reset_storage()
