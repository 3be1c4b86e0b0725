"""Tests for storage configuration loading from the environment."""

import pytest
from pydantic import ValidationError

from app.core.config import (
    DEFAULT_MAX_FILE_SIZE_BYTES,
    MEBIBYTE,
    StorageConfig,
    get_storage_config,
    parse_max_file_size_bytes,
)


def test_defaults_without_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """No storage variables: local backend, 10 MiB limit, no S3 settings."""
    monkeypatch.delenv("APP_ENV", raising=False)
    config = get_storage_config()
    assert config.storage_type == "local"
    assert config.s3_bucket is None
    assert config.s3_region is None
    assert config.max_file_size_bytes == 10 * 1024 * 1024
    assert config.app_env == "development"


def test_s3_variables_are_read(monkeypatch: pytest.MonkeyPatch) -> None:
    """S3 variables map onto StorageConfig fields."""
    monkeypatch.setenv("STORAGE_TYPE", "s3")
    monkeypatch.setenv("S3_BUCKET_NAME", "dealer-uploads")
    monkeypatch.setenv("S3_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ENDPOINT_URL", "http://localhost:9000")
    monkeypatch.setenv("S3_ADDRESSING_STYLE", "path-style")
    monkeypatch.setenv("KMS_KEY_ID", "alias/uploads")
    monkeypatch.setenv("STORAGE_BASE_PREFIX", "instruments")
    config = get_storage_config()
    assert config.storage_type == "s3"
    assert config.s3_bucket == "dealer-uploads"
    assert config.s3_region == "us-east-1"
    assert config.aws_endpoint_url == "http://localhost:9000"
    assert config.s3_addressing_style == "path-style"
    assert config.kms_key_id == "alias/uploads"
    assert config.storage_base_prefix == "instruments"


def test_storage_type_is_case_insensitive(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("STORAGE_TYPE", "S3")
    assert get_storage_config().storage_type == "s3"


@pytest.mark.parametrize("value", ["local", "gcs", "memory", ""])
def test_unknown_storage_type_falls_back_to_local(
    monkeypatch: pytest.MonkeyPatch, value: str
) -> None:
    """Anything other than 's3' selects the local backend."""
    monkeypatch.setenv("STORAGE_TYPE", value)
    assert get_storage_config().storage_type == "local"


def test_invalid_addressing_style_is_dropped(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("S3_ADDRESSING_STYLE", "sideways")
    assert get_storage_config().s3_addressing_style is None


def test_blank_values_are_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    """Empty and whitespace-only variables behave as if they were not set."""
    monkeypatch.setenv("S3_BUCKET_NAME", "   ")
    monkeypatch.setenv("S3_REGION", "")
    config = get_storage_config()
    assert config.s3_bucket is None
    assert config.s3_region is None


def test_node_env_is_used_when_app_env_missing(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.setenv("NODE_ENV", "Production")
    assert get_storage_config().app_env == "production"


def test_config_is_read_on_every_call(monkeypatch: pytest.MonkeyPatch) -> None:
    """Not cached: a changed environment is visible on the next call."""
    assert get_storage_config().s3_bucket is None
    monkeypatch.setenv("S3_BUCKET_NAME", "late-bucket")
    assert get_storage_config().s3_bucket == "late-bucket"


def test_max_file_size_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("UPLOAD_MAX_FILE_SIZE_MB", "2.5")
    assert get_storage_config().max_file_size_bytes == round(2.5 * MEBIBYTE)


@pytest.mark.parametrize("raw", [None, "abc", "0", "-3", "nan", "inf", "-inf"])
def test_invalid_max_file_size_uses_default(raw: str | None) -> None:
    """Missing, non-numeric, non-finite or non-positive values give 10 MiB."""
    assert parse_max_file_size_bytes(raw) == DEFAULT_MAX_FILE_SIZE_BYTES


def test_max_file_size_is_rounded() -> None:
    assert parse_max_file_size_bytes("1") == MEBIBYTE
    assert parse_max_file_size_bytes("0.5") == MEBIBYTE // 2
    assert parse_max_file_size_bytes("0.3") == round(0.3 * MEBIBYTE)


def test_storage_config_is_frozen() -> None:
    config = StorageConfig()
    with pytest.raises(ValidationError):
        config.storage_type = "s3"  # type: ignore[misc]
