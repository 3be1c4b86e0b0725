"""API request/response schemas."""

from app.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
)
from app.schemas.upload import (
    FileDeleteResponse,
    FileExistsResponse,
    FileUrlResponse,
    PresignRequest,
    PresignResponse,
    UploadedFileResponse,
)

__all__ = [
    "FileDeleteResponse",
    "FileExistsResponse",
    "FileUrlResponse",
    "HealthResponse",
    "PresignRequest",
    "PresignResponse",
    "ReadinessErrorResponse",
    "ReadinessResponse",
    "UploadedFileResponse",
]
