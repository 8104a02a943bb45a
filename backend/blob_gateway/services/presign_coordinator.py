"""
Presigned upload coordinator.

Flow:
1. Validate identifiers and the declared size
2. Require signing credentials (SigningUnavailable otherwise)
3. Sign a PUT URL scoped to bucket, key, content type and size
4. Write a provisional BlobMetadata record from the declared values
5. Hand the URL and its absolute expiry to the client

The client uploads straight to the bucket, so the gateway never sees the
bytes. The record written in step 4 is trusted as declared: a client can
upload something else or nothing at all. Retrieval reports that case as
ObjectNotFound rather than BlobNotFound.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional

from blob_gateway.config import settings
from blob_gateway.errors import InvalidRequest, SigningUnavailable
from blob_gateway.models.blob_metadata import BlobMetadata, DEFAULT_CONTENT_TYPE
from blob_gateway.storage.keys import Visibility, address, select_store
from blob_gateway.storage.metadata_store import MetadataStore
from blob_gateway.storage.presign import UrlSigner
from blob_gateway.storage.r2_client import ObjectStore
from blob_gateway.utils.logging import log_presign_issued
from blob_gateway.utils.metrics import blob_presigns_total

logger = logging.getLogger(__name__)


@dataclass
class PresignedUpload:
    upload_url: str
    expires_at: datetime
    metadata: BlobMetadata


class PresignCoordinator:
    """Issues presigned upload URLs backed by a provisional metadata record."""

    def __init__(
        self,
        stores: Mapping[Visibility, ObjectStore],
        metadata_store: MetadataStore,
        signer: UrlSigner,
        expires_in: Optional[int] = None,
    ):
        self.stores = stores
        self.metadata_store = metadata_store
        self.signer = signer
        self.expires_in = expires_in if expires_in is not None else settings.presign_expiration

    async def presign_upload(
        self,
        namespace: str,
        key: str,
        content_type: Optional[str],
        size: int,
        is_public: bool = False,
    ) -> PresignedUpload:
        """
        Issue a presigned PUT URL for one blob.

        Raises:
            InvalidIdentifier: namespace or key is empty
            InvalidRequest: size is not a positive integer
            SigningUnavailable: signing credentials are not configured
            StorageUnavailable: signing or the metadata write failed
        """
        start_time = time.time()
        blob = address(namespace, key)
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise InvalidRequest("size must be a positive integer", namespace=namespace, key=key)
        if not self.signer.is_configured:
            logger.error("R2 signing not configured, cannot generate presigned URL")
            raise SigningUnavailable(namespace=namespace, key=key)

        content_type = content_type or DEFAULT_CONTENT_TYPE
        store = select_store(self.stores, is_public)

        issued_at = datetime.now(timezone.utc)
        upload_url = await asyncio.to_thread(
            self.signer.sign_upload,
            store.bucket,
            blob.storage_key,
            content_type,
            size,
            self.expires_in,
        )
        expires_at = issued_at + timedelta(seconds=self.expires_in)

        # Written before the URL leaves the gateway so the blob is discoverable at once
        metadata = BlobMetadata(
            key=key,
            namespace=namespace,
            size=size,
            content_type=content_type,
            uploaded_at=datetime.now(timezone.utc),
            is_public=is_public,
        )
        await self.metadata_store.put(blob.metadata_key, metadata)

        visibility = Visibility.of(is_public).value
        blob_presigns_total.labels(visibility=visibility).inc()
        log_presign_issued(
            logger,
            namespace=namespace,
            key=key,
            visibility=visibility,
            size=size,
            expires_in=self.expires_in,
            duration_ms=(time.time() - start_time) * 1000,
        )
        return PresignedUpload(upload_url=upload_url, expires_at=expires_at, metadata=metadata)
