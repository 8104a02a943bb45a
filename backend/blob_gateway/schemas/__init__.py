"""
Pydantic schemas for API request/response validation.
"""
from blob_gateway.schemas.blob import (
    PresignUploadRequest,
    PresignUploadResponse,
    BlobGetRequest,
    BlobGetResponse,
    BlobUploadResponse,
    ErrorResponse,
)

__all__ = [
    "PresignUploadRequest",
    "PresignUploadResponse",
    "BlobGetRequest",
    "BlobGetResponse",
    "BlobUploadResponse",
    "ErrorResponse",
]
