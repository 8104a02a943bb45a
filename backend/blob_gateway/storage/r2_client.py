"""
Cloudflare R2 / S3-compatible object store.

Uses boto3 with the S3-compatible API. One ObjectStore wraps one bucket;
the gateway runs two of them (public and private) selected by visibility.
This is storage-provider agnostic - works with any S3-compatible storage.

Object store calls are blocking. Coordinators run them in a worker thread.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from blob_gateway.config import settings
from blob_gateway.errors import StorageUnavailable
from blob_gateway.storage.keys import Visibility
from blob_gateway.utils.logging import log_storage_failure
from blob_gateway.utils.metrics import storage_errors_total

logger = logging.getLogger(__name__)

# Error codes S3/R2 return for a missing object
_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


def create_s3_client(
    access_key: Optional[str] = None,
    secret_key: Optional[str] = None,
):
    """
    Build a boto3 S3 client for R2.

    Without explicit keys boto3 falls back to its default credential chain
    (environment, shared config, instance role).
    """
    return boto3.client(
        's3',
        endpoint_url=settings.r2_endpoint_url,
        aws_access_key_id=access_key,
        aws_secret_access_key=secret_key,
        region_name=settings.r2_region,
        config=Config(
            signature_version='s3v4',
            s3={'addressing_style': 'path'}  # R2 uses path-style
        )
    )


@dataclass
class StoredObject:
    """
    An object fetched from a bucket. `body` yields the bytes in chunks.

    The underlying connection is released when `body` is exhausted or
    closed, or when close() is called. Callers that may stop reading early
    must call close().
    """
    body: Iterator[bytes]
    content_type: Optional[str] = None
    content_length: Optional[int] = None
    release: Optional[Callable[[], None]] = None

    def close(self) -> None:
        if self.release is not None:
            self.release()


def _read_chunks(stream, chunk_size: int) -> Iterator[bytes]:
    try:
        yield from stream.iter_chunks(chunk_size)
    finally:
        stream.close()


class ObjectStore:
    """
    One S3-compatible bucket.

    Missing objects come back as None; every other client or transport
    failure is raised as StorageUnavailable.
    """

    def __init__(self, client, bucket: str, visibility: Visibility):
        self._client = client
        self.bucket = bucket
        self.visibility = visibility

    def __repr__(self):
        return f"<ObjectStore(bucket={self.bucket}, visibility={self.visibility.value})>"

    def put_object(self, object_key: str, data: bytes, content_type: str) -> None:
        """
        Write bytes under object_key with content_type as object metadata.

        Raises:
            StorageUnavailable: the bucket rejected or failed the write
        """
        try:
            self._client.put_object(
                Bucket=self.bucket,
                Key=object_key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            self._fail("put_object", object_key, e)
        logger.debug(f"Stored {object_key} in {self.bucket} ({len(data)} bytes)")

    def get_object(self, object_key: str, chunk_size: Optional[int] = None) -> Optional[StoredObject]:
        """
        Open an object for streaming.

        Returns:
            StoredObject, or None if the bucket has no such key
        """
        if chunk_size is None:
            chunk_size = settings.download_chunk_size

        try:
            response = self._client.get_object(Bucket=self.bucket, Key=object_key)
        except ClientError as e:
            if e.response.get('Error', {}).get('Code') in _NOT_FOUND_CODES:
                logger.debug(f"Object {object_key} not found in {self.bucket}")
                return None
            self._fail("get_object", object_key, e)
        except BotoCoreError as e:
            self._fail("get_object", object_key, e)

        stream = response['Body']
        return StoredObject(
            body=_read_chunks(stream, chunk_size),
            content_type=response.get('ContentType'),
            content_length=response.get('ContentLength'),
            release=stream.close,
        )

    def _fail(self, operation: str, object_key: str, error: Exception):
        storage_errors_total.labels(backend="r2", operation=operation).inc()
        log_storage_failure(logger, "r2", operation, object_key, error, bucket=self.bucket)
        raise StorageUnavailable(f"Object store {operation} failed") from error


# Singleton instance
_object_stores: Optional[Dict[Visibility, ObjectStore]] = None


def get_object_stores() -> Dict[Visibility, ObjectStore]:
    """
    Get the visibility -> ObjectStore mapping, built once per process.

    Both buckets share one client; explicit R2 keys are used when set.
    """
    global _object_stores
    if _object_stores is None:
        client = create_s3_client(settings.r2_access_key, settings.r2_secret_key)
        _object_stores = {
            Visibility.PRIVATE: ObjectStore(client, settings.r2_bucket, Visibility.PRIVATE),
            Visibility.PUBLIC: ObjectStore(client, settings.r2_public_bucket, Visibility.PUBLIC),
        }
        logger.info(
            f"R2 object stores initialized: private={settings.r2_bucket}, "
            f"public={settings.r2_public_bucket}"
        )
    return _object_stores
