"""
Pydantic schemas for API request/response validation.
"""
from vgm_admin.schemas.image import (
    StoredImage,
    UploadResponse,
    ImageListResponse,
    ErrorResponse,
    HealthResponse,
)

__all__ = [
    "StoredImage",
    "UploadResponse",
    "ImageListResponse",
    "ErrorResponse",
    "HealthResponse",
]
