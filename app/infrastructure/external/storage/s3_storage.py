"""S3-compatible object storage (AWS S3, MinIO, localstack) with dedup, SSE and presigned URLs."""

from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import ClientError

from app.core.config import StorageConfig
from app.infrastructure.exceptions import (
    StorageConfigurationError,
    StorageInitializationError,
    StorageNotFoundError,
    StorageOperationError,
)
from app.infrastructure.external.storage.base import BaseStorage
from app.infrastructure.external.storage.body import read_body
from app.infrastructure.external.storage.hash_cache import FifoHashCache
from app.infrastructure.external.storage.protocol import PresignedPost

logger = logging.getLogger(__name__)

DEFAULT_URL_EXPIRES = 3600
DEFAULT_POST_EXPIRES = 900
DEFAULT_POST_MAX_MB = 10

NOT_FOUND_CODES = frozenset({"NoSuchKey", "NotFound", "404"})

_ADDRESSING_STYLES = {
    "path-style": "path",
    "virtual-hosted-style": "virtual",
}


class ClientState(str, Enum):
    """Lifecycle of the lazily built S3 client."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


def compute_file_hash(content: bytes) -> str:
    """SHA-256 hex digest of content."""
    return hashlib.sha256(content).hexdigest()


def server_side_encryption_args(config: StorageConfig) -> dict[str, str]:
    """SSE arguments for put_object.

    KMS when a key is configured; AES256 on real AWS; nothing for custom
    endpoints (S3-compatible servers may not support SSE).
    """
    if config.kms_key_id:
        return {"ServerSideEncryption": "aws:kms", "SSEKMSKeyId": config.kms_key_id}
    if not config.aws_endpoint_url:
        return {"ServerSideEncryption": "AES256"}
    return {}


def build_s3_client(config: StorageConfig) -> Any:
    """Create a boto3 S3 client from config. Blocking (credential resolution)."""
    if not config.s3_bucket:
        raise StorageConfigurationError(
            "S3_BUCKET_NAME is required when STORAGE_TYPE=s3", setting="S3_BUCKET_NAME"
        )
    if not config.s3_region:
        raise StorageConfigurationError(
            "S3_REGION is required when STORAGE_TYPE=s3", setting="S3_REGION"
        )

    s3_options: dict[str, str] = {}
    addressing_style = _ADDRESSING_STYLES.get(config.s3_addressing_style or "")
    if addressing_style:
        s3_options["addressing_style"] = addressing_style

    client_kwargs: dict[str, Any] = {
        "region_name": config.s3_region,
        "config": BotoConfig(signature_version="s3v4", s3=s3_options or None),
    }
    if config.aws_endpoint_url:
        client_kwargs["endpoint_url"] = config.aws_endpoint_url
    if config.aws_access_key_id and config.aws_secret_access_key:
        client_kwargs["aws_access_key_id"] = config.aws_access_key_id
        client_kwargs["aws_secret_access_key"] = config.aws_secret_access_key

    return boto3.session.Session().client("s3", **client_kwargs)


def _error_code(error: ClientError) -> str:
    return str(error.response.get("Error", {}).get("Code", ""))


class S3Storage(BaseStorage):
    """S3-compatible storage with upload deduplication and presigned URLs.

    The boto3 client is not built until first use; pass client= to inject
    one (tests). Blocking boto3 calls run via asyncio.to_thread.

    Deduplication is a process-local optimization: identical content saved
    twice within this instance's lifetime is uploaded once. A fresh process
    uploads again; the hash is also written to object metadata.
    """

    def __init__(
        self,
        config: StorageConfig | None = None,
        client: Any | None = None,
        client_factory: Callable[[StorageConfig], Any] = build_s3_client,
        hash_cache: FifoHashCache | None = None,
    ) -> None:
        super().__init__(config)
        self.bucket = self.config.s3_bucket or ""
        self.hash_cache = hash_cache if hash_cache is not None else FifoHashCache()
        self._client_factory = client_factory
        self._client = client
        self._state = ClientState.READY if client is not None else ClientState.UNINITIALIZED
        self._init_error: Exception | None = None
        self._init_lock = asyncio.Lock()
        logger.debug(
            "S3 storage created: bucket=%s, dedup cache is process-local (capacity=%d)",
            self.bucket,
            self.hash_cache.capacity,
        )

    @property
    def state(self) -> ClientState:
        return self._state

    async def _ensure_client(self) -> Any:
        """Return the client, building it once. Concurrent first calls share one build."""
        if self._state is ClientState.READY:
            return self._client
        async with self._init_lock:
            if self._state is ClientState.READY:
                return self._client
            if self._state is ClientState.FAILED:
                raise StorageInitializationError(
                    "S3 client", str(self._init_error)
                ) from self._init_error
            self._state = ClientState.INITIALIZING
            try:
                client = await asyncio.to_thread(self._client_factory, self.config)
            except Exception as e:
                self._state = ClientState.FAILED
                self._init_error = e
                logger.error("S3 client initialization failed: %s", e)
                raise StorageInitializationError("S3 client", str(e)) from e
            self._client = client
            self._state = ClientState.READY
            logger.info(
                "S3 client initialized: bucket=%s, endpoint=%s",
                self.bucket,
                self.config.aws_endpoint_url or "AWS S3",
            )
            return client

    def get_file_url(self, key: str, expires_in: int = DEFAULT_URL_EXPIRES) -> str:
        """Unsigned object URL; use presign_get for private buckets."""
        if not self.config.aws_endpoint_url:
            return f"https://{self.bucket}.s3.{self.config.s3_region}.amazonaws.com/{key}"
        endpoint = self.config.aws_endpoint_url.rstrip("/")
        return f"{endpoint}/{self.bucket}/{key}"

    async def save_file(self, content: bytes, key: str, content_type: str) -> str:
        """Upload content unless identical bytes were already stored by this instance.

        Returns the key holding the content, which is the earlier key on a dedup hit.
        """
        client = await self._ensure_client()
        body = bytes(content)
        file_hash = compute_file_hash(body)

        cached_key = self.hash_cache.get(file_hash)
        if cached_key is not None:
            logger.info("File with hash %s already exists, skipping upload", file_hash[:16])
            return cached_key

        params: dict[str, Any] = {
            "Bucket": self.bucket,
            "Key": key,
            "Body": body,
            "ContentType": content_type,
            "Metadata": {
                "file-hash": file_hash,
                "original-filename": key,
                "upload-timestamp": str(int(time.time() * 1000)),
            },
            **server_side_encryption_args(self.config),
        }
        try:
            await asyncio.to_thread(client.put_object, **params)
        except Exception as e:
            logger.error("Failed to save file to S3: %s", e)
            raise StorageOperationError("upload", key, str(e)) from e

        self.hash_cache.put(file_hash, key)
        logger.info(
            "File saved successfully - key: %s, hash: %s, size: %d bytes",
            key,
            file_hash[:16],
            len(body),
        )
        return key

    async def download_file(self, key: str) -> bytes:
        client = await self._ensure_client()
        logger.info("Downloading file from S3: %s", key)

        def _get() -> bytes:
            response = client.get_object(Bucket=self.bucket, Key=key)
            return read_body(response.get("Body"))

        try:
            data = await asyncio.to_thread(_get)
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                logger.warning("File not found in S3: %s", key)
                raise StorageNotFoundError(key) from e
            logger.error("Failed to download file from S3: %s", e)
            raise StorageOperationError("download", key, str(e)) from e
        except Exception as e:
            logger.error("Failed to download file from S3: %s", e)
            raise StorageOperationError("download", key, str(e)) from e

        logger.info("File downloaded successfully - key: %s, size: %d bytes", key, len(data))
        return data

    async def delete_file(self, key: str) -> bool:
        """Delete object and drop its dedup cache entry. S3 deletes are idempotent."""
        client = await self._ensure_client()
        logger.info("Deleting file from S3: %s", key)
        try:
            await asyncio.to_thread(client.delete_object, Bucket=self.bucket, Key=key)
        except Exception as e:
            logger.error("Failed to delete file from S3: %s", e)
            raise StorageOperationError("delete", key, str(e)) from e

        self.hash_cache.discard_key(key)
        logger.info("File deleted successfully from S3: %s", key)
        return True

    async def file_exists(self, key: str) -> bool:
        """HEAD the object. Not-found is False; any other failure raises."""
        client = await self._ensure_client()
        try:
            await asyncio.to_thread(client.head_object, Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in NOT_FOUND_CODES:
                return False
            logger.error("Failed to check existence of %s in S3: %s", key, e)
            raise StorageOperationError("head", key, str(e)) from e
        except Exception as e:
            logger.error("Failed to check existence of %s in S3: %s", key, e)
            raise StorageOperationError("head", key, str(e)) from e

    async def _presign_url(self, method: str, params: dict[str, Any], expires: int) -> str:
        client = await self._ensure_client()
        try:
            return await asyncio.to_thread(
                client.generate_presigned_url,
                method,
                Params=params,
                ExpiresIn=expires,
            )
        except Exception as e:
            raise StorageOperationError("presign", params.get("Key"), str(e)) from e

    async def presign_put(
        self, key: str, content_type: str, expires: int = DEFAULT_URL_EXPIRES
    ) -> str:
        return await self._presign_url(
            "put_object",
            {"Bucket": self.bucket, "Key": key, "ContentType": content_type},
            expires,
        )

    async def presign_get(self, key: str, expires: int = DEFAULT_URL_EXPIRES) -> str:
        return await self._presign_url(
            "get_object",
            {"Bucket": self.bucket, "Key": key},
            expires,
        )

    async def presign_post(
        self,
        key: str,
        content_type: str,
        max_mb: float | None = DEFAULT_POST_MAX_MB,
        expires: int = DEFAULT_POST_EXPIRES,
    ) -> PresignedPost:
        """Form-post descriptor limited to max_mb, never above the configured maximum.

        max_mb <= 0 or None means the configured maximum.
        """
        client = await self._ensure_client()
        max_bytes = self.config.max_file_size_bytes
        if max_mb and max_mb > 0:
            max_bytes = min(round(max_mb * 1024 * 1024), max_bytes)
        try:
            response = await asyncio.to_thread(
                client.generate_presigned_post,
                Bucket=self.bucket,
                Key=key,
                Fields={"Content-Type": content_type},
                Conditions=[
                    {"Content-Type": content_type},
                    ["content-length-range", 0, max_bytes],
                ],
                ExpiresIn=expires,
            )
        except Exception as e:
            raise StorageOperationError("presign", key, str(e)) from e
        return PresignedPost(url=response["url"], fields=dict(response["fields"]))
