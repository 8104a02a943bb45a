"""
FastAPI dependency providers for stores and coordinators.

Tests swap the store providers through app.dependency_overrides.
"""
from typing import Mapping

from fastapi import Depends

from blob_gateway.errors import SigningUnavailable
from blob_gateway.services import PresignCoordinator, RetrievalCoordinator, UploadCoordinator
from blob_gateway.storage.keys import Visibility
from blob_gateway.storage.metadata_store import MetadataStore, get_metadata_store
from blob_gateway.storage.presign import UrlSigner, get_url_signer
from blob_gateway.storage.r2_client import ObjectStore, get_object_stores


def get_upload_coordinator(
    stores: Mapping[Visibility, ObjectStore] = Depends(get_object_stores),
    metadata_store: MetadataStore = Depends(get_metadata_store),
) -> UploadCoordinator:
    return UploadCoordinator(stores, metadata_store)


def get_presign_coordinator(
    stores: Mapping[Visibility, ObjectStore] = Depends(get_object_stores),
    metadata_store: MetadataStore = Depends(get_metadata_store),
    signer: UrlSigner = Depends(get_url_signer),
) -> PresignCoordinator:
    return PresignCoordinator(stores, metadata_store, signer)


def get_retrieval_coordinator(
    stores: Mapping[Visibility, ObjectStore] = Depends(get_object_stores),
    metadata_store: MetadataStore = Depends(get_metadata_store),
) -> RetrievalCoordinator:
    return RetrievalCoordinator(stores, metadata_store)


def require_url_signing(signer: UrlSigner = Depends(get_url_signer)) -> UrlSigner:
    """Fail with 503 before the request body is validated when signing is off."""
    if not signer.is_configured:
        raise SigningUnavailable()
    return signer
