"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from vgm_admin.api import health, upload, images

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(upload.router, prefix="/upload", tags=["images"])
api_router.include_router(images.router, prefix="/images", tags=["images"])
