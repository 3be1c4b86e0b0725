"""Storage service factory and the container that owns the process-wide instance."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from app.core.config import StorageConfig, get_storage_config
from app.infrastructure.exceptions import (
    StorageConfigurationError,
    StorageInitializationError,
)
from app.infrastructure.external.storage.protocol import StorageProtocol

logger = logging.getLogger(__name__)

TEST_ENVIRONMENT = "test"


class StorageFactory:
    """Factory for storage service instances based on configuration."""

    @staticmethod
    def create_storage_service(config: StorageConfig | None = None) -> StorageProtocol:
        """Create storage service from config.

        Args:
            config: Storage config; if None, reads get_storage_config().

        Returns:
            S3Storage when storage_type is 's3'; MemoryStorage under the test
            environment; LocalFileStorage otherwise.

        Raises:
            StorageConfigurationError: s3 selected without bucket or region.
            StorageInitializationError: S3Storage construction failed.
        """
        cfg = config or get_storage_config()

        if cfg.storage_type == "s3":
            for setting, value in (
                ("S3_BUCKET_NAME", cfg.s3_bucket),
                ("S3_REGION", cfg.s3_region),
            ):
                if not value:
                    raise StorageConfigurationError(
                        f"STORAGE_TYPE=s3 requires {setting} to be set. "
                        f"Current environment: {cfg.app_env}. "
                        f"Set {setting} or use STORAGE_TYPE=local.",
                        setting=setting,
                    )
            try:
                from app.infrastructure.external.storage import s3_storage
            except ImportError as e:
                raise StorageInitializationError(
                    "S3Storage", f"S3 backend requires boto3 ({e})"
                ) from e
            try:
                return s3_storage.S3Storage(cfg)
            except Exception as e:
                raise StorageInitializationError("S3Storage", str(e)) from e

        if cfg.app_env == TEST_ENVIRONMENT:
            from app.infrastructure.external.storage.memory_storage import MemoryStorage

            return MemoryStorage(cfg)

        from app.infrastructure.external.storage.local_storage import LocalFileStorage

        return LocalFileStorage(cfg)


class StorageContainer:
    """Owns one storage instance, built on first get_storage() call.

    The application keeps a container on app.state and passes it through
    dependencies; reset_storage() returns it to the uninitialized state.
    """

    def __init__(
        self,
        config_loader: Callable[[], StorageConfig] = get_storage_config,
        factory: Callable[[StorageConfig], StorageProtocol] = StorageFactory.create_storage_service,
    ) -> None:
        self._config_loader = config_loader
        self._factory = factory
        self._storage: StorageProtocol | None = None
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self._storage is not None

    def get_storage(self) -> StorageProtocol:
        """Return the storage instance, creating it on first use. Config errors propagate."""
        storage = self._storage
        if storage is not None:
            return storage
        with self._lock:
            if self._storage is None:
                self._storage = self._factory(self._config_loader())
                logger.info(
                    "Storage backend initialized: %s", type(self._storage).__name__
                )
            return self._storage

    def reset_storage(self) -> None:
        """Drop the instance; the next get_storage() builds a new one."""
        with self._lock:
            self._storage = None
