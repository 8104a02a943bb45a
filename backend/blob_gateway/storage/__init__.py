"""
Storage module: blob key codec and the backing stores.

- keys: (namespace, key) -> storage key / metadata key, visibility routing
- r2_client: S3-compatible object stores (public and private buckets)
- metadata_store: Redis-backed BlobMetadata records
- presign: presigned upload URL signer
"""
from blob_gateway.storage.keys import Visibility, BlobAddress, derive, address, select_store
from blob_gateway.storage.r2_client import ObjectStore, StoredObject, get_object_stores
from blob_gateway.storage.metadata_store import MetadataStore, get_metadata_store
from blob_gateway.storage.presign import UrlSigner, get_url_signer

__all__ = [
    "Visibility",
    "BlobAddress",
    "derive",
    "address",
    "select_store",
    "ObjectStore",
    "StoredObject",
    "get_object_stores",
    "MetadataStore",
    "get_metadata_store",
    "UrlSigner",
    "get_url_signer",
]
