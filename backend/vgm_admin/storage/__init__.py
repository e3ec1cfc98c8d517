"""
Storage module for S3-compatible object storage (Cloudflare R2).

The bucket is the only source of truth for uploaded images; nothing is
cached on the application side.
"""
from vgm_admin.storage.r2_client import get_r2_client, R2Client, StorageError

__all__ = ["get_r2_client", "R2Client", "StorageError"]
