"""
ASGI middleware for tracking HTTP request metrics.
Records request count, duration, and errors.
"""
import re
import time
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from vgm_admin.utils.metrics import http_requests_total, http_request_duration_seconds, errors_total

_UUID_RE = re.compile(
    r'[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}',
    re.IGNORECASE
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to track HTTP metrics for Prometheus."""
    
    async def dispatch(self, request: Request, call_next):
        """Process request and record metrics."""
        start_time = time.time()
        
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)
        
        method = request.method
        normalized_path = self._normalize_path(request.url.path)
        
        try:
            response = await call_next(request)
        except Exception:
            errors_total.labels(error_type="exception").inc()
            raise
        
        status_code = response.status_code
        
        http_requests_total.labels(
            method=method,
            path=normalized_path,
            status=status_code
        ).inc()
        
        http_request_duration_seconds.labels(
            method=method,
            path=normalized_path
        ).observe(time.time() - start_time)
        
        # Track errors (4xx and 5xx)
        if status_code >= 400:
            errors_total.labels(error_type=f"{status_code // 100}xx").inc()
        
        return response
    
    def _normalize_path(self, path: str) -> str:
        """
        Normalize path to reduce cardinality.
        Replaces UUIDs and numeric IDs with placeholders.
        """
        path = _UUID_RE.sub('{id}', path)
        
        # Replace numeric IDs at end of path segments
        path = re.sub(r'/\d+(?=/|$)', '/{id}', path)
        
        return path
