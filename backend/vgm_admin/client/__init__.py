"""
Client-side counterparts of the admin page: the upload queue and the gallery.
"""
from vgm_admin.client.gallery import Gallery, GalleryState, ImageDetail
from vgm_admin.client.uploader import (
    InvalidTransition,
    UploadQueue,
    UploadStatus,
    UploadTask,
    Uploader,
)

__all__ = [
    "Gallery",
    "GalleryState",
    "ImageDetail",
    "InvalidTransition",
    "UploadQueue",
    "UploadStatus",
    "UploadTask",
    "Uploader",
]
