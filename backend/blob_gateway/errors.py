"""
Blob gateway error types.

Every failure the gateway reports to a caller is a BlobGatewayError
carrying an HTTP status and a stable reason string. The API layer renders
them as {"code": status, "message": ..., "reason": ...}.
"""
from typing import Optional


class BlobGatewayError(Exception):
    """
    Base exception for blob gateway operations.

    Attributes:
        message: Human-readable error message
        status_code: HTTP-equivalent status code
        reason: Machine-readable cause, stable across releases
        namespace: Blob namespace involved (if applicable)
        key: Blob key involved (if applicable)
    """

    status_code: int = 500
    reason: str = "internal_error"
    default_message: str = "Internal error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        namespace: Optional[str] = None,
        key: Optional[str] = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.namespace = namespace
        self.key = key

    def __str__(self) -> str:
        parts = [self.message]
        if self.namespace:
            parts.append(f"namespace={self.namespace}")
        if self.key:
            parts.append(f"key={self.key}")
        return " ".join(parts)

    def to_dict(self) -> dict:
        return {"code": self.status_code, "message": self.message, "reason": self.reason}


class InvalidRequest(BlobGatewayError):
    """Malformed or missing required fields."""

    status_code = 400
    reason = "invalid_request"
    default_message = "Invalid request body"


class InvalidIdentifier(InvalidRequest):
    """Namespace or key is empty."""

    reason = "invalid_identifier"
    default_message = "Missing namespace or key"


class EmptyPayload(InvalidRequest):
    """Direct upload with a zero-length body."""

    reason = "empty_payload"
    default_message = "Empty file"


class Unauthorized(BlobGatewayError):
    status_code = 401
    reason = "unauthorized"
    default_message = "Missing or invalid authorization header"


class BlobNotFound(BlobGatewayError):
    """No metadata record exists for the blob."""

    status_code = 404
    reason = "blob_not_found"
    default_message = "Blob not found"


class ObjectNotFound(BlobGatewayError):
    """
    Metadata exists but the object store has no bytes for it.

    Covers both orphaned metadata and a presigned upload the client has
    not completed yet; the gateway cannot tell the two apart.
    """

    status_code = 404
    reason = "object_not_found"
    default_message = "Blob not found in storage"


ObjectNotYetAvailable = ObjectNotFound


class SigningUnavailable(BlobGatewayError):
    """Presigned uploads are disabled because signing credentials are missing."""

    status_code = 503
    reason = "signing_unavailable"
    default_message = "R2 credentials not configured for presigned URLs"


class StorageUnavailable(BlobGatewayError):
    """
    A backing store (object store or metadata store) failed.

    Not retried here; retry policy belongs to the caller.
    """

    status_code = 503
    reason = "storage_unavailable"
    default_message = "Storage backend unavailable"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        namespace: Optional[str] = None,
        key: Optional[str] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message, namespace=namespace, key=key)
        self.cause = cause
