"""FastAPI dependencies for the v1 API.

Storage comes from the container on app.state; routes never build
backends themselves.
"""

from typing import Annotated

from fastapi import Depends, Request

from app.application.services.image_upload_service import ImageUploadService
from app.core.config import get_settings
from app.infrastructure.external.storage import StorageContainer, StorageProtocol


def get_storage_container(request: Request) -> StorageContainer:
    """Storage container owned by the running application."""
    return request.app.state.storage


def get_storage(
    container: Annotated[StorageContainer, Depends(get_storage_container)],
) -> StorageProtocol:
    """Configured storage backend (built on first request)."""
    return container.get_storage()


def get_image_upload_service(
    storage: Annotated[StorageProtocol, Depends(get_storage)],
) -> ImageUploadService:
    settings = get_settings()
    return ImageUploadService(storage, signed_url_ttl=settings.image_signed_url_ttl)
