"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app with its own cache, activity
     recorder and trending service on app.state
   - Tests can replace those services on app.state

2. Lifespan Events
   - startup: start the activity recorder's worker thread
   - shutdown: drain and stop it

3. Exception Handlers
   - DiscoveryError subclasses map to their own HTTP status
   - Database errors and anything unexpected become a 500
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError

from app.config import get_settings
from app.database import SessionLocal
from app.exceptions import DiscoveryError
from app.routers import (
    feed_router,
    marketplace_router,
    reviews_router,
    social_router,
)
from app.services.activity import ActivityRecorder
from app.services.cache import TTLCache
from app.services.rate_limiter import limiter, rate_limit_exceeded_handler
from app.services.trending import TrendingService

# =============================================================================
# Logging Configuration
# =============================================================================
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield runs on startup, code after yield on shutdown.
    """
    # ----- STARTUP -----
    logger.info(f"Starting {settings.app_name}...")
    logger.info(f"Debug mode: {settings.debug}")
    logger.info(f"API version: {settings.api_version}")

    recorder: ActivityRecorder = app.state.activity_recorder
    if settings.activity_async_dispatch:
        recorder.start()
        logger.info("Activity recorder dispatching in background")
    else:
        logger.info("Activity recorder writing inline")

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {settings.app_name}...")
    recorder.stop()
    app.state.cache.clear()


def build_services(app: FastAPI) -> None:
    """Attach the process-wide cache, recorder and trending service to app.state."""
    cache = TTLCache(
        max_entries=settings.cache_max_entries,
        default_ttl=settings.cache_default_ttl,
    )
    app.state.cache = cache
    app.state.activity_recorder = ActivityRecorder(
        SessionLocal,
        queue_size=settings.activity_queue_size,
    )
    app.state.trending_service = TrendingService(
        cache,
        trending_ttl=settings.trending_cache_ttl,
        categories_ttl=settings.categories_cache_ttl,
    )


# =============================================================================
# Application Factory
# =============================================================================
def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=settings.app_name,
        description="""
## Book Discovery API

Discovery and social features for the book marketplace.

### Features
- **Reviews**: One review per reader per book, with live rating aggregates
- **Social**: Follow writers and readers
- **Feeds**: Personal and global activity feeds
- **Marketplace**: Trending books and category listings

### Authentication
Bearer JWT access tokens issued by the marketplace auth service.
        """,
        version=settings.api_version,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    build_services(app)

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -------------------------------------------------------------------------
    # Exception Handlers
    # -------------------------------------------------------------------------
    @app.exception_handler(DiscoveryError)
    async def discovery_exception_handler(
        request: Request,
        exc: DiscoveryError,
    ) -> JSONResponse:
        """Map service errors onto their HTTP status."""
        if exc.status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        else:
            logger.info(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message},
        )

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle SQLAlchemy database errors.

        Logs the actual error while hiding details from users.
        """
        logger.error(f"Database error: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "A database error occurred. Please try again later."
            },
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)

        if settings.debug:
            return JSONResponse(
                status_code=500,
                content={"detail": str(exc)},
            )

        return JSONResponse(
            status_code=500,
            content={"detail": "An internal error occurred."},
        )

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = f"/api/{settings.api_version}"

    app.include_router(reviews_router, prefix=api_prefix)
    app.include_router(social_router, prefix=api_prefix)
    app.include_router(feed_router, prefix=api_prefix)
    app.include_router(marketplace_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and healthy.",
    )
    async def health_check(request: Request) -> dict:
        """
        Health check endpoint.

        Returns API status including cache and activity recorder counters.
        """
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.api_version,
            "environment": settings.environment,
            "cache": request.app.state.cache.stats(),
            "activity_recorder": request.app.state.activity_recorder.stats(),
            "rate_limiting": {
                "enabled": settings.rate_limit_enabled,
                "default_limit": settings.rate_limit_default,
            },
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    async def root() -> dict:
        """Root endpoint with API information."""
        return {
            "message": f"Welcome to {settings.app_name}",
            "version": settings.api_version,
            "docs": "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn app.main:app

app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
