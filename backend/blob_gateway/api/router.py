"""
API router aggregator.
Includes all route modules.
"""
from fastapi import APIRouter
from blob_gateway.api import health, blobs

api_router = APIRouter()

# Include route modules
api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(blobs.router, prefix="/blob", tags=["Blob Operations"])
