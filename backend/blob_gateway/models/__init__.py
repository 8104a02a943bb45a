"""
Persisted record types.
"""
from blob_gateway.models.blob_metadata import BlobMetadata, DEFAULT_CONTENT_TYPE, isoformat_utc

__all__ = ["BlobMetadata", "DEFAULT_CONTENT_TYPE", "isoformat_utc"]
