"""
Health check endpoint.
Verifies the storage bucket is reachable.
"""
from fastapi import APIRouter, Depends
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from vgm_admin.schemas.image import HealthResponse
from vgm_admin.services.image_service import ImageService, get_image_service
from vgm_admin.storage.r2_client import StorageError

router = APIRouter()


@router.get("", response_model=HealthResponse, responses={503: {"model": HealthResponse}})
async def health_check(service: ImageService = Depends(get_image_service)):
    """
    Health check endpoint.
    Returns status of the storage connection.
    """
    health_status = {
        "status": "healthy",
        "storage": "unknown",
        "bucket": service.bucket or None,
    }
    
    try:
        await run_in_threadpool(service.check_storage)
        health_status["storage"] = "connected"
    except StorageError as e:
        health_status["storage"] = f"error: {e.message}"
        health_status["status"] = "unhealthy"
    
    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)
    
    return health_status
