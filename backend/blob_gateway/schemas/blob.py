"""
Pydantic schemas for blob endpoints.

Request and response bodies use camelCase field names.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, field_serializer, field_validator
from pydantic.alias_generators import to_camel

from blob_gateway.models.blob_metadata import BlobMetadata, isoformat_utc


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class PresignUploadRequest(_CamelModel):
    """Request schema for presigned URL generation."""
    namespace: str = Field(..., min_length=1, description="Namespace for the blob")
    key: str = Field(..., min_length=1, description="Key/filename for the blob")
    content_type: str = Field(..., description="MIME type the upload will carry")
    size: int = Field(..., gt=0, description="Exact upload size in bytes")
    is_public: StrictBool = Field(False, description="Store in the public bucket")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "namespace": "docs",
                "key": "report.pdf",
                "contentType": "application/pdf",
                "size": 1048576,
                "isPublic": False
            }
        }
    )

    @field_validator("size", mode="before")
    @classmethod
    def _size_is_a_number(cls, value):
        # Whole floats such as 10.0 pass; strings and booleans do not
        if isinstance(value, (bool, str)):
            raise ValueError("size must be a number")
        return value


class PresignUploadResponse(_CamelModel):
    """Response schema for presigned URL."""
    upload_url: str = Field(..., description="Presigned PUT URL for direct upload")
    expires_at: datetime = Field(..., description="Absolute URL expiry (ISO-8601)")

    @field_serializer("expires_at")
    def _serialize_expires_at(self, value: datetime) -> str:
        return isoformat_utc(value)


class BlobGetRequest(_CamelModel):
    """Request schema for a download reference."""
    namespace: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1)


class BlobGetResponse(_CamelModel):
    """Gateway download URL plus the blob's metadata. The URL does not expire."""
    url: str
    metadata: BlobMetadata


class BlobUploadResponse(_CamelModel):
    metadata: BlobMetadata


class ErrorResponse(BaseModel):
    code: int
    message: str
    reason: Optional[str] = None
