"""Upload API schemas."""

from typing import Literal

from pydantic import BaseModel, Field, PositiveFloat, PositiveInt


class UploadedFileResponse(BaseModel):
    """Response for POST /uploads/images."""

    key: str
    url: str
    content_type: str
    size: int


class PresignRequest(BaseModel):
    """Request body for POST /uploads/presign."""

    filename: str = Field(..., min_length=1, max_length=255)
    content_type: str = Field(..., min_length=1, max_length=255)
    method: Literal["put", "post"] = "put"
    prefix: str | None = Field(default=None, max_length=255)
    max_mb: PositiveFloat | None = Field(
        default=None, description="POST only: upper bound on upload size in MB"
    )
    expires: PositiveInt | None = Field(default=None, description="Seconds until expiry")


class PresignResponse(BaseModel):
    """Direct upload target. fields is empty for PUT."""

    key: str
    method: Literal["put", "post"]
    url: str
    fields: dict[str, str] = Field(default_factory=dict)


class FileUrlResponse(BaseModel):
    key: str
    url: str


class FileExistsResponse(BaseModel):
    key: str
    exists: bool


class FileDeleteResponse(BaseModel):
    key: str
    deleted: bool
