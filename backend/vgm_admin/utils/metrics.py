"""
Prometheus metrics definitions for the FastAPI app.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram

# HTTP request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'path', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'path'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)

# Upload metrics
images_uploaded_total = Counter(
    'images_uploaded_total',
    'Total images written to the bucket'
)

image_upload_bytes_total = Counter(
    'image_upload_bytes_total',
    'Total bytes written to the bucket'
)

upload_rejections_total = Counter(
    'upload_rejections_total',
    'Total uploads rejected by validation',
    ['reason']
)

# Storage metrics
storage_errors_total = Counter(
    'storage_errors_total',
    'Total storage operation failures',
    ['operation']
)

storage_latency_seconds = Histogram(
    'storage_latency_seconds',
    'Storage operation latency in seconds',
    ['operation'],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0]
)
