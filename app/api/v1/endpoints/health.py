"""Health check endpoints, used for liveness and readiness checks."""

from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from app.api.v1.dependencies import get_storage_container
from app.infrastructure.exceptions import StorageException
from app.infrastructure.external.storage import StorageContainer
from app.schemas.health import (
    HealthResponse,
    ReadinessErrorResponse,
    ReadinessResponse,
)

router = APIRouter()


@router.get("", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Return simple ok status for liveness."""
    return HealthResponse()


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    responses={503: {"description": "Storage not configured", "model": ReadinessErrorResponse}},
)
def readiness_check(
    container: Annotated[StorageContainer, Depends(get_storage_container)],
) -> ReadinessResponse | JSONResponse:
    """Return 200 once the storage backend can be built; 503 with the reason otherwise."""
    try:
        storage = container.get_storage()
    except StorageException as e:
        return JSONResponse(
            status_code=503,
            content=ReadinessErrorResponse(message=e.message).model_dump(),
        )
    return ReadinessResponse(storage=type(storage).__name__)
