# Kalk API Main Entry Point
"""
FastAPI application for the lake-liming map's search and archive API.

Usage:
    uvicorn kalk_api.main:app --host 0.0.0.0 --port 8000
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .errors import ApiError
from .middleware.correlation import CorrelationMiddleware, get_correlation_id
from .routers import archives, health, search
from .services.supabase_client import supabase_client

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger("kalk.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info(f"Starting Kalk API v{settings.api_version} against {settings.supabase_url}")
    if not settings.supabase_anon_key:
        logger.warning("SUPABASE_ANON_KEY is not set; database requests will be rejected")

    yield

    logger.info("Shutting down Kalk API")
    await supabase_client.close()


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    debug=settings.debug,
    lifespan=lifespan,
    openapi_url="/api/openapi.json",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

# Add middleware (order matters - first added = outermost)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationMiddleware)


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    """Render API errors as ``{"error": ..., "details": ...}``."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for errors that escaped a route handler."""
    logger.error(
        f"[{get_correlation_id()}] Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error"},
    )


app.include_router(health.router, prefix="/api")
app.include_router(search.router, prefix="/api")
app.include_router(archives.router, prefix="/api")
