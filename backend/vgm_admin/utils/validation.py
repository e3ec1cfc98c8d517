"""
Upload constraints shared by the API and the client-side uploader.

The client checks files before touching the network; the server repeats
the same checks and remains the authority.
"""
from typing import Optional

MAX_UPLOAD_BYTES = 10 * 1024 * 1024  # 10MB

ALLOWED_CONTENT_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp")

# Failure reasons (also used as metric labels)
REASON_MISSING_FILE = "missing_file"
REASON_INVALID_TYPE = "invalid_type"
REASON_FILE_TOO_LARGE = "file_too_large"

MESSAGES = {
    REASON_MISSING_FILE: "File is required",
    REASON_INVALID_TYPE: "Invalid file type. Allowed: JPEG, PNG, GIF, WebP",
    REASON_FILE_TOO_LARGE: "File size exceeds 10MB limit",
}


def check_image(content_type: Optional[str], size: int) -> Optional[str]:
    """
    Check an image against the type allow-list and size ceiling.
    
    Type is checked before size, so a 15MB BMP reports the type problem.
    
    Returns:
        Failure reason, or None if the file is acceptable
    """
    if (content_type or "").lower() not in ALLOWED_CONTENT_TYPES:
        return REASON_INVALID_TYPE
    if size > MAX_UPLOAD_BYTES:
        return REASON_FILE_TOO_LARGE
    return None
