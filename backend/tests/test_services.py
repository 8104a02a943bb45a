"""
Tests for the upload, presign and retrieval coordinators.
"""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

from blob_gateway.errors import (
    BlobNotFound,
    EmptyPayload,
    InvalidIdentifier,
    InvalidRequest,
    ObjectNotFound,
    SigningUnavailable,
    StorageUnavailable,
)
from blob_gateway.services import PresignCoordinator, RetrievalCoordinator
from blob_gateway.storage.keys import Visibility
from blob_gateway.storage.r2_client import ObjectStore

from conftest import FakeUrlSigner


def _read(stream) -> bytes:
    return b"".join(stream.body)


class TestUploadCoordinator:
    """Tests for direct uploads."""

    @pytest.mark.asyncio
    async def test_upload_writes_bytes_then_metadata(self, upload_coordinator, object_stores, metadata_store):
        """Bytes land in the private bucket and the record is written."""
        metadata = await upload_coordinator.upload(
            namespace="docs",
            key="readme.txt",
            payload=b"hello",
            content_type="text/plain",
            is_public=False,
        )

        assert metadata.namespace == "docs"
        assert metadata.key == "readme.txt"
        assert metadata.size == 5
        assert metadata.content_type == "text/plain"
        assert metadata.is_public is False
        assert object_stores[Visibility.PRIVATE].objects["docs:readme.txt"] == (b"hello", "text/plain")
        assert "__BLOB:docs:readme.txt" in metadata_store.records

    @pytest.mark.asyncio
    async def test_upload_defaults_content_type(self, upload_coordinator, object_stores):
        metadata = await upload_coordinator.upload("docs", "blob", b"\x00\x01")

        assert metadata.content_type == "application/octet-stream"
        assert object_stores[Visibility.PRIVATE].objects["docs:blob"][1] == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_upload_sets_timestamp(self, upload_coordinator):
        before = datetime.now(timezone.utc)
        metadata = await upload_coordinator.upload("docs", "a", b"x")
        assert before <= metadata.uploaded_at <= datetime.now(timezone.utc)

    @pytest.mark.asyncio
    async def test_public_upload_only_in_public_store(self, upload_coordinator, object_stores):
        """Visibility picks exactly one bucket."""
        await upload_coordinator.upload("img", "logo.png", b"png", "image/png", is_public=True)

        assert "img:logo.png" in object_stores[Visibility.PUBLIC].objects
        assert "img:logo.png" not in object_stores[Visibility.PRIVATE].objects

    @pytest.mark.asyncio
    async def test_empty_payload_rejected(self, upload_coordinator, object_stores, metadata_store):
        """Zero-length uploads write nothing."""
        with pytest.raises(EmptyPayload) as exc_info:
            await upload_coordinator.upload("docs", "empty.txt", b"", "text/plain")

        assert exc_info.value.status_code == 400
        assert metadata_store.records == {}
        assert object_stores[Visibility.PRIVATE].objects == {}

    @pytest.mark.asyncio
    async def test_empty_identifier_rejected(self, upload_coordinator, metadata_store):
        with pytest.raises(InvalidIdentifier):
            await upload_coordinator.upload("", "k", b"x")
        assert metadata_store.records == {}

    @pytest.mark.asyncio
    async def test_object_write_failure_skips_metadata(self, upload_coordinator, object_stores, metadata_store):
        """A failed byte write must never leave a record behind."""
        object_stores[Visibility.PRIVATE].fail_writes = True

        with pytest.raises(StorageUnavailable):
            await upload_coordinator.upload("docs", "a.txt", b"data")

        assert metadata_store.records == {}

    @pytest.mark.asyncio
    async def test_metadata_failure_leaves_orphan_bytes(self, upload_coordinator, object_stores, metadata_store):
        """Failure after the byte write leaves bytes but no record."""
        metadata_store.fail_writes = True

        with pytest.raises(StorageUnavailable):
            await upload_coordinator.upload("docs", "a.txt", b"data")

        assert "docs:a.txt" in object_stores[Visibility.PRIVATE].objects
        assert metadata_store.records == {}

    @pytest.mark.asyncio
    async def test_reupload_overwrites(self, upload_coordinator, retrieval_coordinator):
        """Last write wins for the same (namespace, key)."""
        await upload_coordinator.upload("docs", "a.txt", b"first", "text/plain")
        await upload_coordinator.upload("docs", "a.txt", b"second!", "text/markdown")

        stream = await retrieval_coordinator.open_stream("docs", "a.txt")
        assert _read(stream) == b"second!"
        assert stream.size == 7
        assert stream.content_type == "text/markdown"


class TestPresignCoordinator:
    """Tests for presigned uploads."""

    @pytest.mark.asyncio
    async def test_presign_signs_and_writes_provisional_metadata(self, presign_coordinator, signer, metadata_store):
        before = datetime.now(timezone.utc)
        presigned = await presign_coordinator.presign_upload(
            namespace="docs",
            key="report.pdf",
            content_type="application/pdf",
            size=2048,
            is_public=False,
        )

        assert presigned.upload_url.startswith("https://r2.test/federise-objects/")
        assert signer.calls == [{
            "bucket": "federise-objects",
            "object_key": "docs:report.pdf",
            "content_type": "application/pdf",
            "size": 2048,
            "expires_in": 3600,
        }]
        assert before + timedelta(seconds=3600) <= presigned.expires_at
        assert presigned.expires_at <= datetime.now(timezone.utc) + timedelta(seconds=3600)

        record = await metadata_store.get("__BLOB:docs:report.pdf")
        assert record.size == 2048
        assert record.content_type == "application/pdf"
        assert record.is_public is False

    @pytest.mark.asyncio
    async def test_presign_public_targets_public_bucket(self, presign_coordinator, signer):
        await presign_coordinator.presign_upload("img", "a.png", "image/png", 10, is_public=True)
        assert signer.calls[0]["bucket"] == "federise-objects-public"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [0, -1])
    async def test_non_positive_size_rejected_before_signing(self, presign_coordinator, signer, metadata_store, size):
        with pytest.raises(InvalidRequest):
            await presign_coordinator.presign_upload("docs", "a", "text/plain", size)

        assert signer.calls == []
        assert metadata_store.records == {}

    @pytest.mark.asyncio
    async def test_signing_unconfigured(self, object_stores, metadata_store):
        """No credentials: 503 and no metadata write."""
        coordinator = PresignCoordinator(object_stores, metadata_store, FakeUrlSigner(configured=False))

        with pytest.raises(SigningUnavailable) as exc_info:
            await coordinator.presign_upload("docs", "a", "text/plain", 10)

        assert exc_info.value.status_code == 503
        assert metadata_store.records == {}

    @pytest.mark.asyncio
    async def test_presign_metadata_failure_propagates(self, presign_coordinator, metadata_store):
        metadata_store.fail_writes = True
        with pytest.raises(StorageUnavailable):
            await presign_coordinator.presign_upload("docs", "a", "text/plain", 10)

    @pytest.mark.asyncio
    async def test_presign_custom_expiry(self, object_stores, metadata_store, signer):
        coordinator = PresignCoordinator(object_stores, metadata_store, signer, expires_in=60)
        await coordinator.presign_upload("docs", "a", "text/plain", 10)
        assert signer.calls[0]["expires_in"] == 60


class TestRetrievalCoordinator:
    """Tests for reference and stream retrieval."""

    @pytest.mark.asyncio
    async def test_reference_for_unknown_blob(self, retrieval_coordinator):
        with pytest.raises(BlobNotFound) as exc_info:
            await retrieval_coordinator.get_reference("x", "y", "http://gateway")
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_reference_url_is_encoded(self, upload_coordinator, retrieval_coordinator):
        await upload_coordinator.upload("my docs", "a/b c.txt", b"x", "text/plain")

        reference = await retrieval_coordinator.get_reference("my docs", "a/b c.txt", "http://gateway/")

        assert reference.url == "http://gateway/blob/download/my%20docs/a%2Fb%20c.txt"
        assert reference.metadata.key == "a/b c.txt"

    @pytest.mark.asyncio
    async def test_upload_then_stream_roundtrip(self, upload_coordinator, retrieval_coordinator):
        payload = bytes(range(256)) * 3
        await upload_coordinator.upload("bin", "blob", payload, "application/x-test", is_public=True)

        stream = await retrieval_coordinator.open_stream("bin", "blob")

        assert _read(stream) == payload
        assert stream.size == len(payload)
        assert stream.content_type == "application/x-test"

    @pytest.mark.asyncio
    async def test_stream_without_metadata_ignores_stray_bytes(self, retrieval_coordinator, object_stores):
        """Bytes without a record are never served."""
        object_stores[Visibility.PRIVATE].put_object("docs:stray", b"bytes", "text/plain")

        with pytest.raises(BlobNotFound):
            await retrieval_coordinator.open_stream("docs", "stray")

    @pytest.mark.asyncio
    async def test_presigned_not_uploaded_is_object_not_found(self, presign_coordinator, retrieval_coordinator):
        """Record exists, bytes don't: ObjectNotFound, not BlobNotFound."""
        await presign_coordinator.presign_upload("docs", "pending.bin", "application/octet-stream", 100)

        reference = await retrieval_coordinator.get_reference("docs", "pending.bin", "http://gateway")
        assert reference.metadata.size == 100

        with pytest.raises(ObjectNotFound) as exc_info:
            await retrieval_coordinator.open_stream("docs", "pending.bin")
        assert not isinstance(exc_info.value, BlobNotFound)
        assert exc_info.value.reason == "object_not_found"

    @pytest.mark.asyncio
    async def test_stream_reads_store_from_metadata_visibility(
        self, presign_coordinator, retrieval_coordinator, object_stores
    ):
        """Bytes are fetched from the bucket the record names."""
        await presign_coordinator.presign_upload("img", "a.png", "image/png", 3, is_public=True)
        object_stores[Visibility.PRIVATE].put_object("img:a.png", b"bad", "image/png")

        with pytest.raises(ObjectNotFound):
            await retrieval_coordinator.open_stream("img", "a.png")

        object_stores[Visibility.PUBLIC].put_object("img:a.png", b"png", "image/png")
        stream = await retrieval_coordinator.open_stream("img", "a.png")
        assert _read(stream) == b"png"

    @pytest.mark.asyncio
    async def test_abandoned_stream_releases_object_body(self, upload_coordinator, metadata_store):
        """Stopping after one chunk still closes the botocore body exactly once."""
        body = MagicMock()
        body.iter_chunks.return_value = iter([b"he", b"ll", b"o"])
        client = MagicMock()
        client.get_object.return_value = {"Body": body, "ContentType": "text/plain", "ContentLength": 5}
        stores = {
            Visibility.PRIVATE: ObjectStore(client, "federise-objects", Visibility.PRIVATE),
            Visibility.PUBLIC: ObjectStore(client, "federise-objects-public", Visibility.PUBLIC),
        }
        await upload_coordinator.upload("docs", "a", b"hello", "text/plain")
        coordinator = RetrievalCoordinator(stores, metadata_store)

        stream = await coordinator.open_stream("docs", "a")
        assert next(stream.body) == b"he"
        stream.body.close()

        assert body.close.call_count == 1

    @pytest.mark.asyncio
    async def test_stream_close_releases_store_object(self, upload_coordinator, retrieval_coordinator, object_stores):
        await upload_coordinator.upload("docs", "a.txt", b"hello", "text/plain")

        stream = await retrieval_coordinator.open_stream("docs", "a.txt")
        stream.close()

        assert object_stores[Visibility.PRIVATE].released == ["docs:a.txt"]

    @pytest.mark.asyncio
    async def test_stream_trusts_declared_size(self, presign_coordinator, retrieval_coordinator, object_stores):
        """Size comes from the record, even when the upload differs."""
        await presign_coordinator.presign_upload("docs", "a.txt", "text/plain", 10)
        object_stores[Visibility.PRIVATE].put_object("docs:a.txt", b"abc", "text/html")

        stream = await retrieval_coordinator.open_stream("docs", "a.txt")

        assert stream.size == 10
        assert stream.content_type == "text/plain"
