"""
Prometheus metrics definitions for the blob gateway.
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

# Blob metrics
blob_uploads_total = Counter(
    'blob_uploads_total',
    'Total blobs uploaded through the gateway',
    ['visibility']
)

blob_upload_bytes_total = Counter(
    'blob_upload_bytes_total',
    'Total bytes uploaded through the gateway',
    ['visibility']
)

blob_presigns_total = Counter(
    'blob_presigns_total',
    'Total presigned upload URLs issued',
    ['visibility']
)

blob_downloads_total = Counter(
    'blob_downloads_total',
    'Total blob downloads started',
    ['visibility']
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)

storage_errors_total = Counter(
    'storage_errors_total',
    'Backing store failures',
    ['backend', 'operation']
)
