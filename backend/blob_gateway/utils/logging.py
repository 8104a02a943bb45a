"""
Production logging utility for structured JSON logging.

Provides event-specific logging functions with mandatory fields:
- timestamp (ISO8601)
- level
- service
- event

Optional fields (included when applicable):
- namespace
- key
- visibility
- size
- duration_ms

Usage:
    from blob_gateway.utils.logging import configure_logging, log_blob_uploaded

    configure_logging('blob-gateway', 'INFO')
    log_blob_uploaded(logger, namespace='docs', key='readme.txt', visibility='private', size=5)
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
            service_name: Service identifier
            log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        """
        if cls._configured:
            return  # Already configured

        cls._service_name = service_name

        # Remove default handlers
        root_logger = logging.getLogger()
        root_logger.handlers = []

        formatter = jsonlogger.JsonFormatter(
            '%(timestamp)s %(levelname)s %(name)s %(message)s',
            timestamp=True,
            json_ensure_ascii=False
        )

        # Console handler (for container logs)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

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
    namespace: Optional[str] = None,
    key: Optional[str] = None,
    visibility: Optional[str] = None,
    duration_ms: Optional[float] = None,
    **kwargs
) -> Dict[str, Any]:
    """
    Build extra fields for structured logging.

    Args:
        event: Event name (mandatory)
        namespace: Optional blob namespace
        key: Optional blob key
        visibility: Optional "public" / "private"
        duration_ms: Optional duration in milliseconds
        **kwargs: Additional fields

    Returns:
        Dictionary of extra fields
    """
    extra = {
        "event": event,
        **kwargs
    }

    if namespace:
        extra["namespace"] = namespace
    if key:
        extra["key"] = key
    if visibility:
        extra["visibility"] = visibility
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)

    return extra


def log_blob_uploaded(
    logger: logging.Logger,
    namespace: str,
    key: str,
    visibility: str,
    size: int,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """Log a completed direct upload (bytes and metadata both written)."""
    extra = _build_log_extra(
        event="blob_uploaded",
        namespace=namespace,
        key=key,
        visibility=visibility,
        duration_ms=duration_ms,
        size=size,
        **kwargs
    )
    logger.info(f"Blob uploaded: {namespace}/{key}", extra=extra)


def log_presign_issued(
    logger: logging.Logger,
    namespace: str,
    key: str,
    visibility: str,
    size: int,
    expires_in: int,
    duration_ms: Optional[float] = None,
    **kwargs
):
    """
    Log a presigned upload URL being issued.

    The size is the client's declared size; the gateway never sees the bytes.
    """
    extra = _build_log_extra(
        event="presign_issued",
        namespace=namespace,
        key=key,
        visibility=visibility,
        duration_ms=duration_ms,
        declared_size=size,
        expires_in=expires_in,
        **kwargs
    )
    logger.info(f"Presigned upload issued: {namespace}/{key}", extra=extra)


def log_blob_downloaded(
    logger: logging.Logger,
    namespace: str,
    key: str,
    visibility: str,
    size: int,
    **kwargs
):
    extra = _build_log_extra(
        event="blob_download_started",
        namespace=namespace,
        key=key,
        visibility=visibility,
        size=size,
        **kwargs
    )
    logger.info(f"Blob download started: {namespace}/{key}", extra=extra)


def log_blob_lookup_failed(
    logger: logging.Logger,
    namespace: str,
    key: str,
    reason: str,
    **kwargs
):
    """Log a retrieval that ended in a not-found outcome."""
    extra = _build_log_extra(
        event="blob_lookup_failed",
        namespace=namespace,
        key=key,
        reason=reason,
        **kwargs
    )
    logger.info(f"Blob lookup failed ({reason}): {namespace}/{key}", extra=extra)


def log_storage_failure(
    logger: logging.Logger,
    backend: str,
    operation: str,
    target: str,
    error: Exception,
    **kwargs
):
    """
    Log a backing store failure.

    Args:
        logger: Logger instance
        backend: "r2" or "redis"
        operation: Store operation that failed
        target: Object key or metadata key involved
        error: The underlying exception
        **kwargs: Additional fields
    """
    extra = _build_log_extra(
        event="storage_failure",
        backend=backend,
        operation=operation,
        target=target,
        error=str(error),
        **kwargs
    )
    logger.error(f"Storage failure: {backend}.{operation} {target} - {error}", extra=extra)


def configure_logging(service_name: str, log_level: str = "INFO"):
    """Configure logging (alias for StructuredLogger.configure)."""
    StructuredLogger.configure(service_name, log_level)
