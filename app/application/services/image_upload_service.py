"""Image uploads for invoice items, instrument photos and certificate logos.

Resolves the image type from the declared content type, the filename
extension and the file signature, then stores the bytes through the
configured storage backend.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Literal

from app.domain.exceptions import ValidationException
from app.infrastructure.exceptions import StorageException, StorageNotSupportedError
from app.infrastructure.external.storage.base import get_file_extension
from app.infrastructure.external.storage.protocol import StorageProtocol

logger = logging.getLogger(__name__)

DEFAULT_SIGNED_URL_TTL = 600

# Allowed image MIME types and the extension stored keys use.
ALLOWED_IMAGE_TYPES: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}

_MIME_ALIASES = {"image/jpg": "image/jpeg"}

_EXTENSION_TO_MIME: dict[str, str] = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "webp": "image/webp",
}

_PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
_JPEG_SIGNATURE = b"\xff\xd8\xff"

PresignMethod = Literal["put", "post"]


def normalize_content_type(content_type: str | None) -> str:
    """Lower-case, drop parameters (';charset=...'), map aliases (image/jpg)."""
    value = (content_type or "").split(";", 1)[0].strip().lower()
    return _MIME_ALIASES.get(value, value)


def detect_image_type(content: bytes) -> str | None:
    """Sniff the image MIME type from magic bytes."""
    if content[:3] == _JPEG_SIGNATURE:
        return "image/jpeg"
    if content[:8] == _PNG_SIGNATURE:
        return "image/png"
    if len(content) >= 12 and content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    return None


def resolve_image_type(filename: str, content_type: str | None, content: bytes) -> str:
    """Pick the image type: declared type, then extension, then signature.

    Raises:
        ValidationException: no allowed type, or bytes do not match it.
    """
    declared = normalize_content_type(content_type)
    from_extension = _EXTENSION_TO_MIME.get(get_file_extension(filename).lower())
    sniffed = detect_image_type(content)

    for candidate in (declared, from_extension, sniffed):
        if candidate in ALLOWED_IMAGE_TYPES:
            resolved = candidate
            break
    else:
        raise ValidationException(
            "File must be a supported image type", field="content_type"
        )

    if sniffed != resolved:
        raise ValidationException("Invalid image file content", field="file")
    return resolved


@dataclass(frozen=True)
class UploadedFile:
    """Result of a stored upload."""

    key: str
    url: str
    content_type: str
    size: int


@dataclass(frozen=True)
class PresignedUpload:
    """Direct-to-storage upload target for a client."""

    key: str
    method: PresignMethod
    url: str
    fields: dict[str, str] = field(default_factory=dict)


class ImageUploadService:
    """Single responsibility: validate images, store them, hand out URLs."""

    def __init__(
        self,
        storage: StorageProtocol,
        signed_url_ttl: int = DEFAULT_SIGNED_URL_TTL,
    ) -> None:
        self.storage = storage
        self.signed_url_ttl = signed_url_ttl

    async def upload_image(
        self,
        content: bytes,
        filename: str,
        content_type: str | None,
        prefix: str | None = None,
    ) -> UploadedFile:
        """Validate and store one image. Returns key and a signed URL."""
        resolved = resolve_image_type(filename, content_type, content)
        self.storage.validate_file(filename, resolved, len(content))
        extension = ALLOWED_IMAGE_TYPES[resolved]

        key = self.storage.generate_file_key(f"image.{extension}", prefix)
        stored_key = await self.storage.save_file(content, key, resolved)
        url = await self.signed_url(stored_key)
        logger.info(
            "Image uploaded - key: %s, type: %s, size: %d bytes",
            stored_key,
            resolved,
            len(content),
        )
        return UploadedFile(
            key=stored_key,
            url=url,
            content_type=resolved,
            size=len(content),
        )

    async def signed_url(self, key: str, ttl: int | None = None) -> str:
        """Presigned read URL, or the plain file URL when the backend cannot sign."""
        try:
            return await self.storage.presign_get(key, ttl or self.signed_url_ttl)
        except StorageNotSupportedError:
            return self.storage.get_file_url(key)
        except StorageException as e:
            logger.warning("Failed to generate presigned URL for %s: %s", key, e.message)
            return self.storage.get_file_url(key)

    async def create_presigned_upload(
        self,
        filename: str,
        content_type: str,
        method: PresignMethod = "put",
        prefix: str | None = None,
        max_mb: float | None = None,
        expires: int | None = None,
    ) -> PresignedUpload:
        """Generate a key and a direct-upload target for it.

        Raises:
            ValidationException: missing content type.
            StorageNotSupportedError: backend has no presigned uploads.
        """
        if not content_type:
            raise ValidationException("Content-Type is required", field="content_type")
        key = self.storage.generate_file_key(filename, prefix)
        if method == "post":
            post = await self.storage.presign_post(
                key,
                content_type,
                max_mb=max_mb if max_mb is not None else 10,
                expires=expires or 900,
            )
            return PresignedUpload(key=key, method="post", url=post.url, fields=post.fields)
        url = await self.storage.presign_put(key, content_type, expires or 3600)
        return PresignedUpload(key=key, method="put", url=url)
