"""
Pydantic schemas for image upload and listing endpoints.

Wire names are camelCase (fileUrl, lastModified); Python attributes are
snake_case and the aliases map between them.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class StoredImage(BaseModel):
    """An object stored under the upload prefix."""
    key: str = Field(..., description="Object key in the bucket")
    url: str = Field(..., description="Public URL: public base + '/' + key")
    size: Optional[int] = Field(None, description="Object size in bytes")
    last_modified: Optional[datetime] = Field(
        None, alias="lastModified", description="Last-modified timestamp"
    )
    
    class Config:
        populate_by_name = True


class UploadResponse(BaseModel):
    """Response schema for a successful upload."""
    file_url: str = Field(..., alias="fileUrl", description="Public URL of the new object")
    key: str = Field(..., description="Generated object key")
    
    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "fileUrl": "https://images.example.com/uploads/0b7c9d6e-8a41-4d1e-9f57-2c7a3c1f0e55.jpg",
                "key": "uploads/0b7c9d6e-8a41-4d1e-9f57-2c7a3c1f0e55.jpg"
            }
        }


class ImageListResponse(BaseModel):
    """Response schema for the image listing, newest first."""
    images: list[StoredImage]


class ErrorResponse(BaseModel):
    """Error body for 4xx/5xx responses."""
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check body."""
    status: str
    storage: str
    bucket: Optional[str] = None
