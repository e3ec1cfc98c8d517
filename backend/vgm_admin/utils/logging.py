"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- key
- content_type
- size
- count
- duration_ms

Usage:
    from vgm_admin.utils.logging import configure_logging, log_image_uploaded
    
    configure_logging('vgm-admin', 'INFO')
    log_image_uploaded(logger, key='uploads/abc.jpg', size=2048, content_type='image/jpeg')
"""
import logging
import sys
from typing import Optional, Dict, Any
from pythonjsonlogger import jsonlogger


class StructuredLogger:
    """Structured JSON logger with mandatory fields."""
    
    _service_name = None
    _configured = False
    
    @classmethod
    def configure(cls, service_name: str, log_level: str = "INFO"):
        """
        Configure structured JSON logging for the application.
        
        Args:
            service_name: Service identifier (vgm-admin or vgm-admin-cli)
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured
        
        cls._service_name = service_name
        
        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []
        
        # Create JSON formatter
        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(levelname)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )
        
        # Create console handler (for docker logs)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)
        
        # Configure root logger
        root_logger.addHandler(handler)
        root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
        
        # Add service name to all log records via filter
        class ServiceFilter(logging.Filter):
            def filter(self, record):
                record.service = cls._service_name
                return True
        
        handler.addFilter(ServiceFilter())
        cls._configured = True


def _build_log_extra(
    event: str,
    key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.
    
    Args:
        event: Event name (mandatory)
        key: Optional object key
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
        
    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }
    
    if key:
        extra["key"] = key
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
    
    return extra


# Upload event functions

def log_image_uploaded(
    logger: logging.Logger,
    key: str,
    size: int,
    content_type: str,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a successful image upload.
    
    Args:
        logger: Logger instance
        key: Generated object key (required)
        size: Object size in bytes (required)
        content_type: MIME type stored with the object (required)
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="image_uploaded",
        key=key,
        duration_ms=duration_ms,
        size=size,
        content_type=content_type,
        **kwargs
    )
    
    logger.info(f"Image uploaded: {key}", extra=extra)


def log_upload_rejected(
    logger: logging.Logger,
    reason: str,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
    **kwargs
):
    """
    Log an upload rejected by validation. No object was written.
    
    Args:
        logger: Logger instance
        reason: Validation failure reason (required)
        filename: Original filename, if one was sent
        content_type: Declared MIME type, if one was sent
        **kwargs: Additional fields
    """
    extra = _build_log_extra(event="upload_rejected", reason=reason, **kwargs)
    if filename:
        # "filename" is a reserved LogRecord attribute
        extra["original_filename"] = filename
    if content_type:
        extra["content_type"] = content_type
    
    logger.warning(f"Upload rejected: {reason}", extra=extra)


def log_images_listed(
    logger: logging.Logger,
    count: int,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a completed bucket listing."""
    extra = _build_log_extra(
        event="images_listed",
        duration_ms=duration_ms,
        count=count,
        **kwargs
    )
    
    logger.info(f"Listed {count} images", extra=extra)


def log_storage_failure(
    logger: logging.Logger,
    operation: str,
    error: str,
    key: Optional[str] = None,
    duration_ms: Optional[float] = None,
    include_traceback: bool = True,
    **kwargs
):
    """
    Log a storage-layer failure.
    
    Args:
        logger: Logger instance
        operation: Storage operation name (put_object, list_objects, ...) (required)
        error: Error message (required)
        key: Optional object key involved
        duration_ms: Optional duration in milliseconds
        include_traceback: Whether to include stack trace (default: True)
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="storage_failure",
        key=key,
        duration_ms=duration_ms,
        operation=operation,
        error=str(error),
        **kwargs
    )
    
    message = f"Storage failure: {operation} - {error}"
    
    # Include stack trace when called from an except block
    if include_traceback and sys.exc_info()[0] is not None:
        logger.error(message, extra=extra, exc_info=sys.exc_info())
    else:
        logger.error(message, extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging for a process (see StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
