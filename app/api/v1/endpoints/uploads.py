"""Upload API: thin routes delegating to ImageUploadService and the storage backend."""

from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import Response

from app.api.v1.dependencies import get_image_upload_service, get_storage
from app.application.services.image_upload_service import ImageUploadService
from app.core.limiter import limit_presign, limit_upload, limit_writes
from app.infrastructure.external.storage import StorageProtocol
from app.schemas.upload import (
    FileDeleteResponse,
    FileExistsResponse,
    FileUrlResponse,
    PresignRequest,
    PresignResponse,
    UploadedFileResponse,
)

router = APIRouter()


@router.post("/images", response_model=UploadedFileResponse, status_code=201)
@limit_upload
async def upload_image(
    request: Request,
    upload_svc: Annotated[ImageUploadService, Depends(get_image_upload_service)],
    file: UploadFile = File(...),
    prefix: str | None = Form(None),
) -> UploadedFileResponse:
    """Upload one image (JPEG, PNG or WEBP) and return its key and a signed URL."""
    if not file.filename:
        raise HTTPException(status_code=400, detail="Filename required")
    # Reject on the declared part size before buffering the body.
    if file.size is not None:
        upload_svc.storage.validate_file(
            file.filename, file.content_type or "application/octet-stream", file.size
        )
    content = await file.read()
    uploaded = await upload_svc.upload_image(
        content=content,
        filename=file.filename,
        content_type=file.content_type,
        prefix=prefix,
    )
    return UploadedFileResponse(
        key=uploaded.key,
        url=uploaded.url,
        content_type=uploaded.content_type,
        size=uploaded.size,
    )


@router.post("/presign", response_model=PresignResponse)
@limit_presign
async def presign_upload(
    request: Request,
    body: PresignRequest,
    upload_svc: Annotated[ImageUploadService, Depends(get_image_upload_service)],
) -> PresignResponse:
    """Create a presigned PUT URL or POST form for a direct upload."""
    presigned = await upload_svc.create_presigned_upload(
        filename=body.filename,
        content_type=body.content_type,
        method=body.method,
        prefix=body.prefix,
        max_mb=body.max_mb,
        expires=body.expires,
    )
    return PresignResponse(
        key=presigned.key,
        method=presigned.method,
        url=presigned.url,
        fields=presigned.fields,
    )


@router.get("/url/{key:path}", response_model=FileUrlResponse)
async def get_file_url(
    key: str,
    upload_svc: Annotated[ImageUploadService, Depends(get_image_upload_service)],
    expires_in: int | None = Query(None, ge=1, le=7 * 24 * 3600),
) -> FileUrlResponse:
    """Signed read URL for a stored file; plain URL when the backend cannot sign."""
    url = await upload_svc.signed_url(key, expires_in)
    return FileUrlResponse(key=key, url=url)


@router.get("/files/{key:path}")
async def download_file(
    key: str,
    storage: Annotated[StorageProtocol, Depends(get_storage)],
) -> Response:
    """Stream the stored bytes back."""
    content = await storage.download_file(key)
    return Response(content=content, media_type="application/octet-stream")


@router.get("/exists/{key:path}", response_model=FileExistsResponse)
async def file_exists(
    key: str,
    storage: Annotated[StorageProtocol, Depends(get_storage)],
) -> FileExistsResponse:
    return FileExistsResponse(key=key, exists=await storage.file_exists(key))


@router.delete("/files/{key:path}", response_model=FileDeleteResponse)
@limit_writes
async def delete_file(
    request: Request,
    key: str,
    storage: Annotated[StorageProtocol, Depends(get_storage)],
) -> FileDeleteResponse:
    """Delete a stored file. deleted is False when nothing was there (local/memory)."""
    return FileDeleteResponse(key=key, deleted=await storage.delete_file(key))
