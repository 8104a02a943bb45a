"""
Blob coordinators: direct upload, presigned upload and retrieval.
"""
from blob_gateway.services.upload_coordinator import UploadCoordinator
from blob_gateway.services.presign_coordinator import PresignCoordinator, PresignedUpload
from blob_gateway.services.retrieval_coordinator import (
    RetrievalCoordinator,
    BlobReference,
    BlobStream,
    download_path,
)

__all__ = [
    "UploadCoordinator",
    "PresignCoordinator",
    "PresignedUpload",
    "RetrievalCoordinator",
    "BlobReference",
    "BlobStream",
    "download_path",
]
