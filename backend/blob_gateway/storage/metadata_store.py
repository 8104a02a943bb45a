"""
Redis-backed metadata store.

Holds one JSON BlobMetadata record per metadata key. Plain GET/SET, no
transactions and no conditional writes: concurrent writers to the same
key resolve last-write-wins.
"""
import logging
from typing import Optional

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from blob_gateway.config import settings
from blob_gateway.errors import StorageUnavailable
from blob_gateway.models.blob_metadata import BlobMetadata
from blob_gateway.utils.logging import log_storage_failure
from blob_gateway.utils.metrics import storage_errors_total

logger = logging.getLogger(__name__)


class MetadataStore:
    """Async key-value access to BlobMetadata records."""

    def __init__(self, client: redis.Redis):
        self._client = client

    async def get(self, metadata_key: str) -> Optional[BlobMetadata]:
        """
        Load the record stored under metadata_key.

        Returns:
            BlobMetadata, or None if no record exists

        Raises:
            StorageUnavailable: Redis failed or the stored value is not a record
        """
        try:
            raw = await self._client.get(metadata_key)
        except RedisError as e:
            self._fail("get", metadata_key, e)

        if raw is None:
            return None

        try:
            return BlobMetadata.from_json(raw)
        except ValidationError as e:
            self._fail("decode", metadata_key, e)

    async def put(self, metadata_key: str, metadata: BlobMetadata) -> None:
        """Write (or overwrite) the record under metadata_key."""
        try:
            await self._client.set(metadata_key, metadata.to_json())
        except RedisError as e:
            self._fail("put", metadata_key, e)
        logger.debug(f"Stored metadata record {metadata_key}")

    async def ping(self) -> bool:
        return bool(await self._client.ping())

    async def close(self) -> None:
        await self._client.aclose()

    def _fail(self, operation: str, metadata_key: str, error: Exception):
        storage_errors_total.labels(backend="redis", operation=operation).inc()
        log_storage_failure(logger, "redis", operation, metadata_key, error)
        raise StorageUnavailable(f"Metadata store {operation} failed") from error


# Singleton instance
_metadata_store: Optional[MetadataStore] = None


def get_metadata_store() -> MetadataStore:
    """Get the process-wide metadata store."""
    global _metadata_store
    if _metadata_store is None:
        _metadata_store = MetadataStore(
            redis.from_url(settings.redis_url, decode_responses=True)
        )
    return _metadata_store


async def close_metadata_store() -> None:
    global _metadata_store
    if _metadata_store is not None:
        await _metadata_store.close()
        _metadata_store = None
