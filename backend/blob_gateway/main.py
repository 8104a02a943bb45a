"""
FastAPI application entry point.
Sets up the blob gateway API with lifespan events and error rendering.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException as StarletteHTTPException

from blob_gateway import __version__
from blob_gateway.config import settings
from blob_gateway.api.router import api_router
from blob_gateway.auth.firebase import initialize_firebase
from blob_gateway.errors import BlobGatewayError, InvalidRequest
from blob_gateway.middleware.metrics_middleware import MetricsMiddleware
from blob_gateway.storage.metadata_store import close_metadata_store
from blob_gateway.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: logging and Firebase Admin SDK
    - Shutdown: close the metadata store connection pool
    """
    configure_logging(settings.service_name, settings.log_level)

    # Skip if Firebase config not provided (for local dev without Firebase);
    # every authenticated route then answers 401
    if settings.firebase_project_id:
        try:
            initialize_firebase()
        except Exception as e:
            if settings.environment == "production":
                raise
            logger.warning(f"Firebase initialization failed: {e}")

    yield

    await close_metadata_store()


app = FastAPI(
    title="Blob Gateway",
    description="Namespace/key addressed blob storage over R2",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

app.include_router(api_router)


@app.exception_handler(BlobGatewayError)
async def blob_gateway_error_handler(request: Request, exc: BlobGatewayError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.debug(f"Request validation failed: {exc.errors()}")
    return JSONResponse(status_code=400, content=InvalidRequest().to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"code": exc.status_code, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Blob Gateway",
        "version": __version__,
        "environment": settings.environment
    }


@app.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
