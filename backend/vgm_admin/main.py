"""
FastAPI application entry point.
Sets up the API, the admin page, metrics and logging.
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST

from vgm_admin import __version__
from vgm_admin.config import settings
from vgm_admin.api import pages
from vgm_admin.api.router import api_router
from vgm_admin.middleware.metrics_middleware import MetricsMiddleware
from vgm_admin.storage.r2_client import get_r2_client
from vgm_admin.utils.logging import configure_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup/shutdown events.
    - Startup: configure logging, build the storage client
    """
    # Configure structured JSON logging
    configure_logging('vgm-admin', settings.log_level)
    
    r2 = get_r2_client()
    if not r2.is_configured:
        logger.warning("Starting without storage; upload and list requests will fail")
    
    yield


# Create FastAPI app
app = FastAPI(
    title="vgm-admin",
    description="Upload images to Cloudflare R2 / S3 and browse them",
    version=__version__,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# Metrics middleware (must be after CORS to track all requests)
app.add_middleware(MetricsMiddleware)

# Include API routes
app.include_router(api_router, prefix="/api")
app.include_router(pages.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Catch-all exception handler.
    
    Anything that escapes an endpoint still becomes a structured JSON body.
    """
    logger.error(
        "Unhandled exception",
        extra={
            "event": "unhandled_exception",
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        },
        exc_info=exc,
    )
    
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "details": str(exc)},
    )


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST
    )
