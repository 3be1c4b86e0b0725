"""Application services: image uploads."""

from app.application.services.image_upload_service import (
    ALLOWED_IMAGE_TYPES,
    ImageUploadService,
    PresignedUpload,
    UploadedFile,
)

__all__ = [
    "ALLOWED_IMAGE_TYPES",
    "ImageUploadService",
    "PresignedUpload",
    "UploadedFile",
]
