"""Application configuration (settings and environment).

Two layers, both read with pydantic-settings:

- Settings: application-wide options, cached by get_settings().
- StorageConfig: file-storage options. get_storage_config() re-reads the
  environment on every call and returns an immutable snapshot; callers that
  need a stable view must keep the returned object.
"""

import math
from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MEBIBYTE = 1024 * 1024
DEFAULT_MAX_FILE_SIZE_MB = 10
DEFAULT_MAX_FILE_SIZE_BYTES = DEFAULT_MAX_FILE_SIZE_MB * MEBIBYTE

StorageType = Literal["local", "s3"]
AddressingStyle = Literal["virtual-hosted-style", "path-style"]

_ADDRESSING_STYLES = ("virtual-hosted-style", "path-style")


class Settings(BaseSettings):
    """Application settings loaded from environment and .env."""

    # App
    app_name: str = "instrument-dealer"
    app_version: str = "1.0.0"
    debug: bool = False

    # CORS
    allowed_origins: str = "http://localhost:3000"

    # Uploads
    image_signed_url_ttl: int = 600  # 10 minutes; shorter TTLs expire while the UI is open
    presign_put_expires: int = 3600
    presign_post_expires: int = 900

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings (validated on first call)."""
    return Settings()


class StorageConfig(BaseModel):
    """Immutable storage configuration snapshot.

    Attributes:
        storage_type: 'local' or 's3'.
        s3_bucket: Bucket name (required when storage_type is 's3').
        s3_region: AWS region (required when storage_type is 's3').
        aws_access_key_id: Optional static credentials; default chain otherwise.
        aws_secret_access_key: Optional static credentials.
        aws_endpoint_url: Custom endpoint (MinIO, localstack). Unset means AWS.
        s3_addressing_style: 'virtual-hosted-style' or 'path-style'.
        kms_key_id: KMS key for SSE-KMS uploads.
        storage_base_prefix: Default key prefix for generated file keys.
        local_root: Root directory of the local filesystem backend.
        max_file_size_bytes: Upper bound enforced by validate_file.
        app_env: Runtime environment name ('test' selects the memory backend).
    """

    model_config = ConfigDict(frozen=True)

    storage_type: StorageType = "local"
    s3_bucket: str | None = None
    s3_region: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_endpoint_url: str | None = None
    s3_addressing_style: AddressingStyle | None = None
    kms_key_id: str | None = None
    storage_base_prefix: str | None = None
    local_root: str | None = None
    max_file_size_bytes: PositiveInt = DEFAULT_MAX_FILE_SIZE_BYTES
    app_env: str = "development"


class _StorageEnvironment(BaseSettings):
    """Raw storage variables as they appear in the environment."""

    storage_type: str | None = None
    s3_bucket_name: str | None = None
    s3_region: str | None = None
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None
    aws_endpoint_url: str | None = None
    s3_addressing_style: str | None = None
    kms_key_id: str | None = None
    storage_base_prefix: str | None = None
    storage_local_root: str | None = None
    upload_max_file_size_mb: str | None = None
    app_env: str | None = Field(
        default=None,
        validation_alias=AliasChoices("APP_ENV", "NODE_ENV"),
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        """Treat empty or whitespace-only values as unset."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


def parse_max_file_size_bytes(raw_mb: str | None) -> int:
    """Convert UPLOAD_MAX_FILE_SIZE_MB to bytes.

    Falls back to 10 MiB when the value is missing, not a number,
    not finite, or not greater than zero.
    """
    if raw_mb is None:
        return DEFAULT_MAX_FILE_SIZE_BYTES
    try:
        mb = float(raw_mb)
    except ValueError:
        return DEFAULT_MAX_FILE_SIZE_BYTES
    if not math.isfinite(mb) or mb <= 0:
        return DEFAULT_MAX_FILE_SIZE_BYTES
    return max(1, round(mb * MEBIBYTE))


def get_storage_config() -> StorageConfig:
    """Read storage settings from the environment (no caching).

    STORAGE_TYPE other than 's3' resolves to 'local'. Unknown
    S3_ADDRESSING_STYLE values are dropped.
    """
    env = _StorageEnvironment()
    storage_type: StorageType = (
        "s3" if (env.storage_type or "").lower() == "s3" else "local"
    )
    addressing_style = (
        env.s3_addressing_style
        if env.s3_addressing_style in _ADDRESSING_STYLES
        else None
    )
    return StorageConfig(
        storage_type=storage_type,
        s3_bucket=env.s3_bucket_name,
        s3_region=env.s3_region,
        aws_access_key_id=env.aws_access_key_id,
        aws_secret_access_key=env.aws_secret_access_key,
        aws_endpoint_url=env.aws_endpoint_url,
        s3_addressing_style=addressing_style,
        kms_key_id=env.kms_key_id,
        storage_base_prefix=env.storage_base_prefix,
        local_root=env.storage_local_root,
        max_file_size_bytes=parse_max_file_size_bytes(env.upload_max_file_size_mb),
        app_env=(env.app_env or "development").lower(),
    )
