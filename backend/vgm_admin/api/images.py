"""
Image listing endpoint.

Returns every object under uploads/ (minus the folder marker), newest
first. Storage failures become 500 {"error", "details"}; a truncated
listing is never returned.
"""
from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from vgm_admin.schemas.image import ErrorResponse, ImageListResponse
from vgm_admin.services.image_service import ImageService, get_image_service
from vgm_admin.storage.r2_client import StorageError

router = APIRouter()


@router.get(
    "",
    response_model=ImageListResponse,
    response_model_exclude_none=True,
    responses={500: {"model": ErrorResponse}},
)
async def list_images(service: ImageService = Depends(get_image_service)):
    """List uploaded images sorted by last-modified, newest first."""
    try:
        images = await run_in_threadpool(service.list_images)
    except StorageError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Failed to list images", details=e.message).model_dump(),
        )
    
    return ImageListResponse(images=images)
