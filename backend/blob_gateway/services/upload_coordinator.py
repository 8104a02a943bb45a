"""
Direct upload coordinator.

Flow:
1. Select the object store from the visibility flag
2. Write the bytes under the storage key, content type attached
3. Only after the write succeeds, write the BlobMetadata record

A failure (or cancellation) before step 3 can leave bytes without a
record, never a record without bytes. Retrieval ignores bytes that have
no record, so the orphan is invisible to clients.
"""
import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Mapping, Optional

from blob_gateway.errors import EmptyPayload
from blob_gateway.models.blob_metadata import BlobMetadata, DEFAULT_CONTENT_TYPE
from blob_gateway.storage.keys import Visibility, address, select_store
from blob_gateway.storage.metadata_store import MetadataStore
from blob_gateway.storage.r2_client import ObjectStore
from blob_gateway.utils.logging import log_blob_uploaded
from blob_gateway.utils.metrics import blob_upload_bytes_total, blob_uploads_total

logger = logging.getLogger(__name__)


class UploadCoordinator:
    """Persists streamed-through bytes, then their metadata record."""

    def __init__(self, stores: Mapping[Visibility, ObjectStore], metadata_store: MetadataStore):
        self.stores = stores
        self.metadata_store = metadata_store

    async def upload(
        self,
        namespace: str,
        key: str,
        payload: bytes,
        content_type: Optional[str] = None,
        is_public: bool = False,
    ) -> BlobMetadata:
        """
        Store a blob and return its metadata record.

        Raises:
            InvalidIdentifier: namespace or key is empty
            EmptyPayload: payload has no bytes
            StorageUnavailable: object or metadata write failed
        """
        start_time = time.time()
        blob = address(namespace, key)
        if not payload:
            raise EmptyPayload(namespace=namespace, key=key)

        content_type = content_type or DEFAULT_CONTENT_TYPE
        store = select_store(self.stores, is_public)

        # Bytes first; a raise here skips the metadata write entirely
        await asyncio.to_thread(store.put_object, blob.storage_key, payload, content_type)

        metadata = BlobMetadata(
            key=key,
            namespace=namespace,
            size=len(payload),
            content_type=content_type,
            uploaded_at=datetime.now(timezone.utc),
            is_public=is_public,
        )
        await self.metadata_store.put(blob.metadata_key, metadata)

        visibility = Visibility.of(is_public).value
        blob_uploads_total.labels(visibility=visibility).inc()
        blob_upload_bytes_total.labels(visibility=visibility).inc(metadata.size)
        log_blob_uploaded(
            logger,
            namespace=namespace,
            key=key,
            visibility=visibility,
            size=metadata.size,
            duration_ms=(time.time() - start_time) * 1000,
        )
        return metadata
