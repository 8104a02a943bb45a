"""
Test configuration and fixtures.

Backing stores are replaced with in-memory fakes that honour the same
contracts as the R2 / Redis adapters (None for missing, StorageUnavailable
on failure), so no external services are needed.
"""
import os

# Set test environment before any imports
os.environ["ENVIRONMENT"] = "test"
os.environ["REDIS_URL"] = "redis://localhost:6379/15"
os.environ.pop("FIREBASE_PROJECT_ID", None)

import pytest
from typing import AsyncGenerator, Dict, List, Optional, Tuple
from urllib.parse import quote

from httpx import AsyncClient, ASGITransport

from blob_gateway.errors import SigningUnavailable, StorageUnavailable
from blob_gateway.models.blob_metadata import BlobMetadata
from blob_gateway.services import PresignCoordinator, RetrievalCoordinator, UploadCoordinator
from blob_gateway.storage.keys import Visibility
from blob_gateway.storage.r2_client import StoredObject


class FakeObjectStore:
    """In-memory bucket with the ObjectStore interface."""

    def __init__(self, bucket: str, visibility: Visibility):
        self.bucket = bucket
        self.visibility = visibility
        self.objects: Dict[str, Tuple[bytes, str]] = {}
        self.fail_writes = False
        self.released: List[str] = []

    def put_object(self, object_key: str, data: bytes, content_type: str) -> None:
        if self.fail_writes:
            raise StorageUnavailable("Object store put_object failed")
        self.objects[object_key] = (bytes(data), content_type)

    def get_object(self, object_key: str, chunk_size: Optional[int] = None) -> Optional[StoredObject]:
        if object_key not in self.objects:
            return None
        data, content_type = self.objects[object_key]
        size = chunk_size or 2
        chunks = [data[i:i + size] for i in range(0, len(data), size)]
        return StoredObject(
            body=iter(chunks),
            content_type=content_type,
            content_length=len(data),
            release=lambda: self.released.append(object_key),
        )


class FakeMetadataStore:
    """In-memory metadata store; records are kept as serialized JSON."""

    def __init__(self):
        self.records: Dict[str, str] = {}
        self.fail_writes = False

    async def get(self, metadata_key: str) -> Optional[BlobMetadata]:
        raw = self.records.get(metadata_key)
        return BlobMetadata.from_json(raw) if raw is not None else None

    async def put(self, metadata_key: str, metadata: BlobMetadata) -> None:
        if self.fail_writes:
            raise StorageUnavailable("Metadata store put failed")
        self.records[metadata_key] = metadata.to_json()

    async def ping(self) -> bool:
        return True


class FakeUrlSigner:
    """Records sign requests and returns a deterministic URL."""

    def __init__(self, configured: bool = True):
        self.configured = configured
        self.calls: List[dict] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    def sign_upload(self, bucket, object_key, content_type, size, expires_in) -> str:
        if not self.configured:
            raise SigningUnavailable()
        self.calls.append({
            "bucket": bucket,
            "object_key": object_key,
            "content_type": content_type,
            "size": size,
            "expires_in": expires_in,
        })
        return f"https://r2.test/{bucket}/{quote(object_key, safe='')}?X-Amz-Expires={expires_in}"


@pytest.fixture
def object_stores() -> Dict[Visibility, FakeObjectStore]:
    return {
        Visibility.PRIVATE: FakeObjectStore("federise-objects", Visibility.PRIVATE),
        Visibility.PUBLIC: FakeObjectStore("federise-objects-public", Visibility.PUBLIC),
    }


@pytest.fixture
def metadata_store() -> FakeMetadataStore:
    return FakeMetadataStore()


@pytest.fixture
def signer() -> FakeUrlSigner:
    return FakeUrlSigner()


@pytest.fixture
def upload_coordinator(object_stores, metadata_store) -> UploadCoordinator:
    return UploadCoordinator(object_stores, metadata_store)


@pytest.fixture
def presign_coordinator(object_stores, metadata_store, signer) -> PresignCoordinator:
    return PresignCoordinator(object_stores, metadata_store, signer, expires_in=3600)


@pytest.fixture
def retrieval_coordinator(object_stores, metadata_store) -> RetrievalCoordinator:
    return RetrievalCoordinator(object_stores, metadata_store)


def get_test_app(object_stores, metadata_store, signer, authenticated: bool = True):
    """Create the FastAPI app with stores, signer and auth overridden."""
    from blob_gateway.main import app
    from blob_gateway.auth.dependencies import Principal, get_current_principal
    from blob_gateway.storage.metadata_store import get_metadata_store
    from blob_gateway.storage.presign import get_url_signer
    from blob_gateway.storage.r2_client import get_object_stores

    app.dependency_overrides[get_object_stores] = lambda: object_stores
    app.dependency_overrides[get_metadata_store] = lambda: metadata_store
    app.dependency_overrides[get_url_signer] = lambda: signer

    if authenticated:
        async def override_get_current_principal():
            return Principal(uid="test-uid", email="test@example.com")

        app.dependency_overrides[get_current_principal] = override_get_current_principal

    return app


@pytest.fixture
async def client(object_stores, metadata_store, signer) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = get_test_app(object_stores, metadata_store, signer)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    # Clean up overrides
    app.dependency_overrides.clear()


@pytest.fixture
async def unauthenticated_client(object_stores, metadata_store, signer) -> AsyncGenerator[AsyncClient, None]:
    """Client that goes through the real bearer-token dependency."""
    app = get_test_app(object_stores, metadata_store, signer, authenticated=False)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
