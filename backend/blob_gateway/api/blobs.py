"""
Blob endpoints.

- POST /blob/upload          - raw body, identifiers in x-blob-* headers
- POST /blob/presign-upload  - presigned PUT URL for direct-to-R2 upload
- POST /blob/get             - stable gateway download URL + metadata
- GET  /blob/download/{namespace}/{key} - streams the bytes

All endpoints require a valid bearer token.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from blob_gateway.auth.dependencies import Principal, get_current_principal
from blob_gateway.config import settings
from blob_gateway.dependencies import (
    get_presign_coordinator,
    get_retrieval_coordinator,
    get_upload_coordinator,
    require_url_signing,
)
from blob_gateway.errors import InvalidRequest
from blob_gateway.schemas.blob import (
    BlobGetRequest,
    BlobGetResponse,
    BlobUploadResponse,
    ErrorResponse,
    PresignUploadRequest,
    PresignUploadResponse,
)
from blob_gateway.services import PresignCoordinator, RetrievalCoordinator, UploadCoordinator
from blob_gateway.storage.keys import encode_uri_component
from blob_gateway.storage.presign import UrlSigner

router = APIRouter()

_ERRORS = {
    400: {"model": ErrorResponse, "description": "Bad request"},
    401: {"model": ErrorResponse, "description": "Unauthorized"},
}


def _request_origin(request: Request) -> str:
    if settings.gateway_base_url:
        return settings.gateway_base_url
    return f"{request.url.scheme}://{request.url.netloc}"


@router.post("/upload", response_model=BlobUploadResponse, responses=_ERRORS)
async def upload_blob(
    request: Request,
    principal: Principal = Depends(get_current_principal),
    namespace: Optional[str] = Header(None, alias="x-blob-namespace"),
    key: Optional[str] = Header(None, alias="x-blob-key"),
    public: Optional[str] = Header(None, alias="x-blob-public"),
    coordinator: UploadCoordinator = Depends(get_upload_coordinator),
):
    """
    Upload a blob directly through the gateway.

    The body is the raw blob. Content-Type is stored with it;
    x-blob-public: true selects the public bucket.
    """
    if not namespace or not key:
        raise InvalidRequest("Missing x-blob-namespace or x-blob-key header")

    # A client disconnect here raises before anything is written
    payload = await request.body()

    metadata = await coordinator.upload(
        namespace=namespace,
        key=key,
        payload=payload,
        content_type=request.headers.get("content-type"),
        is_public=public == "true",
    )
    return BlobUploadResponse(metadata=metadata)


@router.post(
    "/presign-upload",
    response_model=PresignUploadResponse,
    responses={**_ERRORS, 503: {"model": ErrorResponse, "description": "R2 credentials not configured"}},
)
async def presign_upload(
    body: PresignUploadRequest,
    principal: Principal = Depends(get_current_principal),
    signer: UrlSigner = Depends(require_url_signing),
    coordinator: PresignCoordinator = Depends(get_presign_coordinator),
):
    """
    Get a presigned URL for direct upload to R2.

    Signing availability is checked before the body fields are validated,
    so an unconfigured gateway answers 503 even for an invalid body.

    A metadata record is written from the declared size and content type
    before the URL is returned; the gateway does not observe the upload.
    """
    presigned = await coordinator.presign_upload(
        namespace=body.namespace,
        key=body.key,
        content_type=body.content_type,
        size=body.size,
        is_public=body.is_public,
    )
    return PresignUploadResponse(upload_url=presigned.upload_url, expires_at=presigned.expires_at)


@router.post(
    "/get",
    response_model=BlobGetResponse,
    responses={**_ERRORS, 404: {"model": ErrorResponse, "description": "Blob not found"}},
)
async def get_blob(
    body: BlobGetRequest,
    request: Request,
    principal: Principal = Depends(get_current_principal),
    coordinator: RetrievalCoordinator = Depends(get_retrieval_coordinator),
):
    """Get a gateway download URL for a blob. No expiry - the gateway handles auth."""
    reference = await coordinator.get_reference(body.namespace, body.key, _request_origin(request))
    return BlobGetResponse(url=reference.url, metadata=reference.metadata)


@router.get(
    "/download/{namespace}/{key:path}",
    response_class=StreamingResponse,
    responses={**_ERRORS, 404: {"model": ErrorResponse, "description": "Blob not found"}},
)
async def download_blob(
    namespace: str,
    key: str,
    principal: Principal = Depends(get_current_principal),
    coordinator: RetrievalCoordinator = Depends(get_retrieval_coordinator),
):
    """Stream a blob's bytes. Type and length come from the metadata record."""
    stream = await coordinator.open_stream(namespace, key)
    headers = {
        "Content-Type": stream.content_type,
        "Content-Length": str(stream.size),
        "Content-Disposition": f'attachment; filename="{encode_uri_component(key)}"',
    }
    # Runs after the last chunk or a client disconnect
    return StreamingResponse(stream.body, headers=headers, background=BackgroundTask(stream.close))
