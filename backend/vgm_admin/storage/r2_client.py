"""
Cloudflare R2 / S3-compatible storage client.

Uses boto3 with S3-compatible API to interact with Cloudflare R2.
This is storage-provider agnostic - works with any S3-compatible storage
(set R2_ENDPOINT to point at AWS S3, MinIO, etc.).

Unlike a presign-only client, the admin tool proxies uploads through the
backend, so every operation here raises StorageError on failure and the
API layer decides how to report it.
"""
import logging
from typing import Any, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from vgm_admin.config import Settings, settings as default_settings

logger = logging.getLogger(__name__)

# S3 returns at most 1000 keys per ListObjectsV2 page
LIST_PAGE_SIZE = 1000


class StorageError(Exception):
    """Raised when a storage operation fails or storage is not configured."""
    
    def __init__(self, message: str, operation: str = "unknown"):
        super().__init__(message)
        self.message = message
        self.operation = operation


class R2Client:
    """
    S3-compatible client for Cloudflare R2.
    
    Wraps the handful of bucket operations the admin tool needs:
    object writes, prefix listings and a reachability check.
    """
    
    def __init__(self, config: Optional[Settings] = None, client: Any = None):
        """
        Initialize R2 client with boto3.
        
        Args:
            config: Settings to read storage configuration from
                (defaults to the global settings)
            client: Pre-built S3 client; skips boto3 client construction
                when given (used by tests and scripts)
        """
        self._settings = config or default_settings
        self._client = client
        self._configured = client is not None and bool(self._settings.r2_bucket_name)
        
        if client is not None:
            return
        
        # Check if R2 is configured
        if not all([
            self._settings.storage_endpoint,
            self._settings.r2_access_key_id,
            self._settings.r2_secret_access_key,
            self._settings.r2_bucket_name,
        ]):
            logger.warning(
                "R2 storage not configured. "
                "Set R2_ACCOUNT_ID (or R2_ENDPOINT), R2_ACCESS_KEY_ID, "
                "R2_SECRET_ACCESS_KEY and R2_BUCKET_NAME."
            )
            return
        
        try:
            # Use signature_version='s3v4' for R2 compatibility.
            # Retries use botocore's "standard" mode (exponential backoff).
            self._client = boto3.client(
                's3',
                endpoint_url=self._settings.storage_endpoint,
                aws_access_key_id=self._settings.r2_access_key_id,
                aws_secret_access_key=self._settings.r2_secret_access_key,
                region_name=self._settings.r2_region,
                config=Config(
                    signature_version='s3v4',
                    s3={'addressing_style': 'path'},  # R2 uses path-style
                    retries={
                        'max_attempts': max(1, self._settings.r2_max_attempts),
                        'mode': 'standard',
                    },
                )
            )
            self._configured = True
            logger.info(f"R2 client initialized for bucket: {self.bucket}")
            
        except BotoCoreError as e:
            logger.error(f"Failed to initialize R2 client: {e}")
    
    @property
    def is_configured(self) -> bool:
        """Check if R2 client is properly configured."""
        return self._configured and self._client is not None
    
    @property
    def bucket(self) -> str:
        """Get configured bucket name."""
        return self._settings.r2_bucket_name or ""
    
    def _require_configured(self, operation: str) -> None:
        if not self.is_configured:
            raise StorageError("Storage service not configured", operation=operation)
    
    def put_object(self, object_key: str, body: bytes, content_type: str) -> None:
        """
        Write a single object to the bucket.
        
        Args:
            object_key: The S3 object key (path in bucket)
            body: Object bytes
            content_type: MIME type stored with the object
            
        Raises:
            StorageError: If storage is not configured or the write fails
        """
        self._require_configured("put_object")
        
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=object_key,
                Body=body,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(str(e), operation="put_object") from e
        
        logger.debug(f"Stored object {object_key} ({len(body)} bytes)")
    
    def list_objects(self, prefix: str) -> list[dict]:
        """
        List every object under a prefix, following continuation tokens.
        
        Args:
            prefix: Key prefix to list
            
        Returns:
            Raw S3 object entries (Key, Size, LastModified, ...)
            
        Raises:
            StorageError: If any page fails; a partial listing is never returned
        """
        self._require_configured("list_objects")
        
        all_objects = []
        continuation_token = None
        
        while True:
            kwargs = {'Bucket': self.bucket, 'Prefix': prefix, 'MaxKeys': LIST_PAGE_SIZE}
            if continuation_token:
                kwargs['ContinuationToken'] = continuation_token
            
            try:
                response = self._client.list_objects_v2(**kwargs)
            except (ClientError, BotoCoreError) as e:
                raise StorageError(str(e), operation="list_objects") from e
            
            all_objects.extend(response.get('Contents', []))
            
            if not response.get('IsTruncated'):
                break
            
            continuation_token = response.get('NextContinuationToken')
        
        logger.debug(f"Listed {len(all_objects)} objects under {prefix}")
        return all_objects
    
    def check_bucket(self) -> None:
        """
        Verify the bucket is reachable with the configured credentials.
        
        Raises:
            StorageError: If storage is not configured or the bucket is unreachable
        """
        self._require_configured("head_bucket")
        
        try:
            self._client.head_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(str(e), operation="head_bucket") from e


# Singleton instance
_r2_client: Optional[R2Client] = None


def get_r2_client() -> R2Client:
    """
    Get the singleton R2 client instance.
    
    Returns:
        R2Client instance (may or may not be configured)
    """
    global _r2_client
    if _r2_client is None:
        _r2_client = R2Client()
    return _r2_client
