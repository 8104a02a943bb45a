"""
BlobMetadata record.

The only persisted record of the gateway. Stored as JSON in the metadata
store under the blob's metadata key; its presence is what makes a blob
exist from the gateway's point of view.

Field names on the wire are camelCase (contentType, uploadedAt, isPublic)
so records written by older gateway deployments stay readable.
"""
from datetime import datetime, timezone
from typing import Union

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

DEFAULT_CONTENT_TYPE = "application/octet-stream"


def isoformat_utc(value: datetime) -> str:
    """Render a datetime as ISO-8601 UTC with millisecond precision and a Z suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class BlobMetadata(BaseModel):
    """
    Metadata record for a stored blob.

    Attributes:
        namespace: Caller-chosen partition
        key: Identifier unique within namespace
        size: Byte length at write time (declared size on the presign path)
        content_type: MIME type
        uploaded_at: When the record was written
        is_public: Selects the public or private bucket; fixed per record
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    key: str
    namespace: str
    size: int = Field(..., ge=0)
    content_type: str = DEFAULT_CONTENT_TYPE
    uploaded_at: datetime
    is_public: bool = False

    @field_serializer("uploaded_at")
    def _serialize_uploaded_at(self, value: datetime) -> str:
        return isoformat_utc(value)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_json(cls, raw: Union[str, bytes]) -> "BlobMetadata":
        return cls.model_validate_json(raw)
