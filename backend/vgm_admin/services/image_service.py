"""
Image upload and listing service.

Flow for an upload:
1. Validate the file (present, allowed MIME type, within size ceiling)
2. Generate a unique object key under the uploads/ prefix
3. Write the bytes and content type to the bucket (exactly one write)
4. Return the key and its public URL

Listing enumerates the uploads/ prefix, drops the folder marker object
and sorts newest first.
"""
import functools
import logging
import posixpath
import re
import time
import uuid
from datetime import datetime
from typing import Optional

from vgm_admin.config import Settings, settings as default_settings
from vgm_admin.schemas.image import StoredImage
from vgm_admin.storage.r2_client import R2Client, StorageError, get_r2_client
from vgm_admin.utils.logging import (
    log_image_uploaded,
    log_images_listed,
    log_storage_failure,
    log_upload_rejected,
)
from vgm_admin.utils.metrics import (
    image_upload_bytes_total,
    images_uploaded_total,
    storage_errors_total,
    storage_latency_seconds,
    upload_rejections_total,
)
from vgm_admin.utils.validation import (
    MESSAGES,
    REASON_MISSING_FILE,
    check_image,
)

logger = logging.getLogger(__name__)

UPLOAD_PREFIX = "uploads/"

# Fallback extensions when the filename carries none
CONTENT_TYPE_EXTENSIONS = {
    'image/jpeg': 'jpg',
    'image/png': 'png',
    'image/gif': 'gif',
    'image/webp': 'webp',
}

_EXTENSION_RE = re.compile(r'^[A-Za-z0-9]+$')


class ImageValidationError(Exception):
    """Raised when an upload fails validation. Nothing is written."""
    
    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        self.message = message or MESSAGES[reason]
        super().__init__(self.message)


def _compare_last_modified(a: StoredImage, b: StoredImage) -> int:
    # Entries without a timestamp compare equal to everything
    if a.last_modified is None or b.last_modified is None:
        return 0
    if a.last_modified > b.last_modified:
        return -1
    if a.last_modified < b.last_modified:
        return 1
    return 0


class ImageService:
    """
    Upload/list operations on top of an R2Client.
    
    Holds no state between requests; the bucket is the source of truth.
    """
    
    def __init__(self, r2: R2Client, config: Optional[Settings] = None):
        self._r2 = r2
        self._settings = config or default_settings
    
    # ------------------------------------------------------------------
    # Keys and URLs
    # ------------------------------------------------------------------
    
    @staticmethod
    def get_extension(filename: Optional[str], content_type: str) -> str:
        """
        Extension for a new object key.
        
        Taken from the base name of the uploaded filename (lower-cased,
        alphanumeric only); falls back to the content type mapping so user
        supplied names can never inject path segments.
        """
        base = posixpath.basename((filename or "").replace("\\", "/"))
        if "." in base:
            extension = base.rsplit(".", 1)[1].lower()
            if _EXTENSION_RE.match(extension):
                return extension
        return CONTENT_TYPE_EXTENSIONS.get(content_type.lower(), 'bin')
    
    @staticmethod
    def generate_object_key(filename: Optional[str], content_type: str) -> str:
        """
        Generate a unique object key for an upload.
        
        Pattern: uploads/{uuid}.{ext}
        """
        extension = ImageService.get_extension(filename, content_type)
        return f"{UPLOAD_PREFIX}{uuid.uuid4()}.{extension}"
    
    def public_url(self, key: str) -> str:
        """Public URL for an object key."""
        return f"{self._settings.r2_public_url}/{key}"
    
    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    
    def validate_upload(
        self,
        filename: Optional[str],
        content_type: Optional[str],
        size: Optional[int],
    ) -> None:
        """
        Validate an incoming upload.
        
        Raises:
            ImageValidationError: With reason missing_file, invalid_type or
                file_too_large
        """
        if size is None:
            reason = REASON_MISSING_FILE
        else:
            reason = check_image(content_type, size)
        
        if reason is None:
            return
        
        upload_rejections_total.labels(reason=reason).inc()
        log_upload_rejected(logger, reason, filename=filename, content_type=content_type)
        raise ImageValidationError(reason)
    
    def upload_image(
        self,
        filename: Optional[str],
        content_type: Optional[str],
        data: Optional[bytes],
    ) -> StoredImage:
        """
        Validate and store an uploaded image.
        
        Args:
            filename: Original filename (only its extension is used)
            content_type: Declared MIME type
            data: File bytes, or None if no file was sent
            
        Returns:
            StoredImage with the generated key and public URL
            
        Raises:
            ImageValidationError: If validation fails (no object written)
            StorageError: If the write fails
        """
        self.validate_upload(filename, content_type, None if data is None else len(data))
        
        content_type = content_type.lower()
        key = self.generate_object_key(filename, content_type)
        
        start_time = time.time()
        try:
            self._r2.put_object(key, data, content_type)
        except StorageError as e:
            storage_errors_total.labels(operation=e.operation).inc()
            log_storage_failure(
                logger,
                operation=e.operation,
                error=e.message,
                key=key,
                duration_ms=(time.time() - start_time) * 1000,
            )
            raise
        duration = time.time() - start_time
        
        storage_latency_seconds.labels(operation="put_object").observe(duration)
        images_uploaded_total.inc()
        image_upload_bytes_total.inc(len(data))
        log_image_uploaded(
            logger,
            key=key,
            size=len(data),
            content_type=content_type,
            duration_ms=duration * 1000,
        )
        
        return StoredImage(key=key, url=self.public_url(key), size=len(data))
    
    def list_images(self) -> list[StoredImage]:
        """
        List every uploaded image, newest first.
        
        The prefix marker object (key == "uploads/") is skipped. Entries
        without a timestamp compare equal to everything and the sort is
        stable, so they keep their relative position.
        
        Raises:
            StorageError: If the listing fails
        """
        start_time = time.time()
        try:
            objects = self._r2.list_objects(UPLOAD_PREFIX)
        except StorageError as e:
            storage_errors_total.labels(operation=e.operation).inc()
            log_storage_failure(
                logger,
                operation=e.operation,
                error=e.message,
                duration_ms=(time.time() - start_time) * 1000,
            )
            raise
        duration = time.time() - start_time
        storage_latency_seconds.labels(operation="list_objects").observe(duration)
        
        images = []
        for obj in objects:
            key = obj.get('Key')
            if not key or key == UPLOAD_PREFIX:
                continue
            last_modified: Optional[datetime] = obj.get('LastModified')
            images.append(StoredImage(
                key=key,
                url=self.public_url(key),
                size=obj.get('Size'),
                last_modified=last_modified,
            ))
        
        images = sorted(images, key=functools.cmp_to_key(_compare_last_modified))
        
        log_images_listed(logger, count=len(images), duration_ms=duration * 1000)
        return images
    
    @property
    def bucket(self) -> str:
        return self._r2.bucket
    
    def check_storage(self) -> None:
        """Raise StorageError if the bucket is unreachable."""
        self._r2.check_bucket()


def get_image_service() -> ImageService:
    """
    FastAPI dependency returning an ImageService over the shared R2 client.
    """
    return ImageService(get_r2_client())
