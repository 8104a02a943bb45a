"""
Retrieval coordinator.

Two modes, both gated on the metadata record:

- reference: metadata lookup, then a stable gateway-relative download URL
  (no expiry; the gateway's own auth protects it)
- stream: metadata lookup, store selection from metadata.is_public,
  object fetch, then the bytes with content type and size taken from
  the record rather than re-measured

Bytes with no metadata record are never served.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, Iterator, Mapping, Optional

from blob_gateway.errors import BlobNotFound, ObjectNotFound
from blob_gateway.models.blob_metadata import BlobMetadata, DEFAULT_CONTENT_TYPE
from blob_gateway.storage.keys import BlobAddress, Visibility, address, encode_uri_component, select_store
from blob_gateway.storage.metadata_store import MetadataStore
from blob_gateway.storage.r2_client import ObjectStore
from blob_gateway.utils.logging import log_blob_downloaded, log_blob_lookup_failed
from blob_gateway.utils.metrics import blob_downloads_total

logger = logging.getLogger(__name__)

DOWNLOAD_PATH = "/blob/download"


@dataclass
class BlobReference:
    url: str
    metadata: BlobMetadata


@dataclass
class BlobStream:
    """Bytes of one blob. close() must run once the response is done with `body`."""
    metadata: BlobMetadata
    body: Iterator[bytes]
    release: Optional[Callable[[], None]] = None

    @property
    def content_type(self) -> str:
        return self.metadata.content_type or DEFAULT_CONTENT_TYPE

    @property
    def size(self) -> int:
        return self.metadata.size

    def close(self) -> None:
        if self.release is not None:
            self.release()


def download_path(namespace: str, key: str) -> str:
    """Gateway-relative download path with percent-encoded segments."""
    return f"{DOWNLOAD_PATH}/{encode_uri_component(namespace)}/{encode_uri_component(key)}"


class RetrievalCoordinator:
    """Resolves (namespace, key) to a download reference or a byte stream."""

    def __init__(self, stores: Mapping[Visibility, ObjectStore], metadata_store: MetadataStore):
        self.stores = stores
        self.metadata_store = metadata_store

    async def _load_metadata(self, blob: BlobAddress) -> BlobMetadata:
        metadata = await self.metadata_store.get(blob.metadata_key)
        if metadata is None:
            log_blob_lookup_failed(logger, blob.namespace, blob.key, BlobNotFound.reason)
            raise BlobNotFound(namespace=blob.namespace, key=blob.key)
        return metadata

    async def get_reference(self, namespace: str, key: str, origin: str) -> BlobReference:
        """
        Build a download reference for an existing blob.

        Args:
            namespace: Blob namespace
            key: Blob key
            origin: Scheme and host the URL is rooted at

        Raises:
            InvalidIdentifier: namespace or key is empty
            BlobNotFound: no metadata record
        """
        blob = address(namespace, key)
        metadata = await self._load_metadata(blob)
        return BlobReference(url=f"{origin.rstrip('/')}{download_path(namespace, key)}", metadata=metadata)

    async def open_stream(self, namespace: str, key: str) -> BlobStream:
        """
        Open a blob's bytes for streaming.

        Raises:
            InvalidIdentifier: namespace or key is empty
            BlobNotFound: no metadata record
            ObjectNotFound: record exists but the bucket has no bytes
                (orphaned record, or a presigned upload not done yet)
            StorageUnavailable: a store failed
        """
        blob = address(namespace, key)
        metadata = await self._load_metadata(blob)

        store = select_store(self.stores, metadata.is_public)
        stored = await asyncio.to_thread(store.get_object, blob.storage_key)
        if stored is None:
            log_blob_lookup_failed(logger, namespace, key, ObjectNotFound.reason, bucket=store.bucket)
            raise ObjectNotFound(namespace=namespace, key=key)

        visibility = Visibility.of(metadata.is_public).value
        blob_downloads_total.labels(visibility=visibility).inc()
        log_blob_downloaded(logger, namespace=namespace, key=key, visibility=visibility, size=metadata.size)
        return BlobStream(metadata=metadata, body=stored.body, release=stored.close)
