"""
Health check endpoint.
Verifies Redis connectivity and reports object store / signer configuration.
"""
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from blob_gateway.config import settings
from blob_gateway.storage.metadata_store import MetadataStore, get_metadata_store
from blob_gateway.storage.presign import UrlSigner, get_url_signer

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def health_check(
    metadata_store: MetadataStore = Depends(get_metadata_store),
    signer: UrlSigner = Depends(get_url_signer),
):
    """
    Health check endpoint.
    Returns status of the metadata store and storage configuration.
    """
    health_status = {
        "status": "healthy",
        "metadata_store": "unknown",
        "object_store": "configured" if settings.r2_endpoint_url else "not configured",
        "presigned_uploads": "enabled" if signer.is_configured else "disabled",
    }

    try:
        await metadata_store.ping()
        health_status["metadata_store"] = "connected"
    except (RedisError, OSError) as e:
        logger.warning(f"Health check: metadata store unreachable: {e}")
        health_status["metadata_store"] = f"error: {str(e)}"
        health_status["status"] = "unhealthy"

    if health_status["status"] == "unhealthy":
        return JSONResponse(status_code=503, content=health_status)

    return health_status
