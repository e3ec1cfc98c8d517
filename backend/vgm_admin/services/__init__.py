"""
Service layer for business logic.
"""
from vgm_admin.services.image_service import ImageService, ImageValidationError, get_image_service

__all__ = ["ImageService", "ImageValidationError", "get_image_service"]
