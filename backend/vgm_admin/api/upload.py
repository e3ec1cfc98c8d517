"""
Upload endpoint.

Accepts one image as multipart form field "file", validates it, writes it
to the bucket under a generated key and returns the public URL.

Errors are converted to JSON at this boundary:
- 400 {"error": ...} for validation failures (nothing written)
- 500 {"error": ..., "details": ...} for storage failures
"""

from fastapi import APIRouter, Depends, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from starlette.datastructures import UploadFile

from vgm_admin.schemas.image import ErrorResponse, UploadResponse
from vgm_admin.services.image_service import (
    ImageService,
    ImageValidationError,
    get_image_service,
)
from vgm_admin.storage.r2_client import StorageError
from vgm_admin.utils.validation import MAX_UPLOAD_BYTES

router = APIRouter()


@router.post(
    "",
    response_model=UploadResponse,
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "multipart/form-data": {
                    "schema": {
                        "type": "object",
                        "properties": {"file": {"type": "string", "format": "binary"}},
                    }
                }
            },
        }
    },
)
async def upload_image(
    request: Request,
    service: ImageService = Depends(get_image_service),
):
    """
    Upload a single image (JPEG, PNG, GIF or WebP, up to 10MB).
    
    Returns the generated key and the public URL it is served from.
    
    A missing or non-file "file" field is a 400 like any other validation
    failure.
    """
    filename = None
    content_type = None
    data = None
    async with request.form() as form:
        field = form.get("file")
        if isinstance(field, UploadFile):
            filename = field.filename
            content_type = field.content_type
            # One byte past the ceiling is enough to tell the file is too large
            data = await field.read(MAX_UPLOAD_BYTES + 1)
        elif field is not None:
            # Plain text field: no content type, so it fails the type check
            data = field.encode()
    
    try:
        image = await run_in_threadpool(service.upload_image, filename, content_type, data)
    except ImageValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ErrorResponse(error=e.message).model_dump(exclude_none=True),
        )
    except StorageError as e:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Failed to upload file", details=e.message).model_dump(),
        )
    
    return UploadResponse(file_url=image.url, key=image.key)
