"""Infrastructure exceptions for storage operations.

Storage errors extend DealerException so presentation can map them
to HTTP responses consistently.
"""

from app.domain.exceptions import DealerException, ValidationException


class StorageException(DealerException):
    """Base exception for storage operations."""


class StorageConfigurationError(StorageException):
    """Required storage setting is missing or invalid (fatal, not retried)."""

    def __init__(self, message: str, setting: str | None = None) -> None:
        super().__init__(
            message,
            "STORAGE_CONFIGURATION_ERROR",
            {"setting": setting} if setting else {},
        )


class StorageInitializationError(StorageException):
    """Storage backend or its client could not be constructed."""

    def __init__(self, component: str, reason: str) -> None:
        super().__init__(
            f"{component} initialization failed: {reason}",
            "STORAGE_INITIALIZATION_ERROR",
            {"component": component, "reason": reason},
        )


class StorageNotFoundError(StorageException):
    """File or object not found in storage."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"File not found: {key}",
            "STORAGE_NOT_FOUND",
            {"key": key},
        )


class StorageOperationError(StorageException):
    """Backend I/O failed; message carries the operation and the original error."""

    def __init__(
        self,
        operation: str,
        key: str | None,
        reason: str,
        backend: str = "S3",
    ) -> None:
        super().__init__(
            f"{backend} {operation} failed: {reason}",
            f"STORAGE_{operation.upper()}_ERROR",
            {"operation": operation, "key": key, "reason": reason},
        )
        self.operation = operation


class StorageNotSupportedError(StorageException):
    """Operation not supported by this storage backend."""

    def __init__(self, operation: str, backend: str) -> None:
        super().__init__(
            f"{operation} is not supported for {backend}",
            "STORAGE_NOT_SUPPORTED",
            {"operation": operation, "backend": backend},
        )


class MissingContentTypeError(ValidationException):
    """Upload was submitted without a content type."""

    def __init__(self, filename: str | None = None) -> None:
        message = "Content-Type is required"
        if filename:
            message = f"{message} for {filename}"
        super().__init__(message, field="content_type")


class FileTooLargeError(ValidationException):
    """Upload exceeds the configured maximum size."""

    def __init__(self, size: int, max_size: int) -> None:
        super().__init__(
            f"File size {size} exceeds maximum {max_size} bytes",
            field="size",
            error_code="FILE_TOO_LARGE",
            details={"size": size, "max_size": max_size},
        )


class InvalidStorageKeyError(ValidationException):
    """Key resolves outside the storage root (path traversal)."""

    def __init__(self, key: str) -> None:
        super().__init__(
            f"Invalid storage key: {key}",
            field="key",
            error_code="INVALID_STORAGE_KEY",
        )
