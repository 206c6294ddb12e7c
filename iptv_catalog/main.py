"""
IPTV Catalog - FastAPI Backend

Turns extended-M3U playlists into a browsable, searchable per-tenant catalog.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from iptv_catalog.config import get_settings
from iptv_catalog.errors import (
    EmptyPlaylistError,
    ParseError,
    PlaylistFetchError,
    PlaylistFetchTimeout,
    SearchError,
    StoreError,
    ValidationError,
)
from iptv_catalog.services.catalog_store import get_store
from iptv_catalog.routers import catalog, search

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

settings = get_settings()

# Rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("Starting IPTV Catalog backend...")

    # Initialize catalog database
    await get_store()
    logger.info("Catalog store initialized")

    yield

    logger.info("Shutting down IPTV Catalog backend...")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Playlist catalog with series grouping and ranked search",
    lifespan=lifespan
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(catalog.router)
app.include_router(search.router)


@app.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.app_version}


# Error handlers
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content={"error": "validation_error", "detail": str(exc)})


@app.exception_handler(EmptyPlaylistError)
async def empty_playlist_handler(request: Request, exc: EmptyPlaylistError):
    return JSONResponse(
        status_code=422,
        content={"error": "empty_playlist", "detail": "The playlist has no playable entries"}
    )


@app.exception_handler(ParseError)
async def parse_error_handler(request: Request, exc: ParseError):
    return JSONResponse(
        status_code=422,
        content={"error": "parse_error", "detail": "The file is not a valid M3U playlist"}
    )


@app.exception_handler(PlaylistFetchTimeout)
async def fetch_timeout_handler(request: Request, exc: PlaylistFetchTimeout):
    return JSONResponse(status_code=504, content={"error": "fetch_timeout", "detail": str(exc)})


@app.exception_handler(PlaylistFetchError)
async def fetch_error_handler(request: Request, exc: PlaylistFetchError):
    return JSONResponse(status_code=502, content={"error": "fetch_error", "detail": str(exc)})


@app.exception_handler(StoreError)
@app.exception_handler(SearchError)
async def storage_error_handler(request: Request, exc: Exception):
    logger.error(f"Storage failure on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=503,
        content={"error": "storage_unavailable", "detail": "Catalog storage is unavailable, retry later"}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "iptv_catalog.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
