"""
FastAPI application entry point.

This is the main entry point for the TaskShare storage gateway API.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import setup_exception_handlers
from api.routers import (
    health_router,
    local_files_router,
    objects_router,
    storage_router,
    uploads_router,
)
from core.config import get_settings
from services.storage import close_storage, get_upload_ingress

# Configure logging
_settings = get_settings()
logging.basicConfig(
    level=getattr(logging, _settings.log_level.upper(), logging.INFO),
    format=_settings.log_format,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()

    # ============ Startup ============
    logger.info(f"Starting {settings.app_name} v{settings.app_version}")
    logger.info(f"Environment: {settings.environment}")

    ingress = get_upload_ingress()
    if ingress.remote_enabled:
        names = ", ".join(a.name for a in ingress.gateway.accounts)
        logger.info(
            f"OneDrive storage initialized with {ingress.gateway.account_count} account(s): {names}"
        )
    else:
        logger.info(
            f"OneDrive not configured, storing uploads in {ingress.local_store.base_path}"
        )

    logger.info("Application startup complete")

    yield

    # ============ Shutdown ============
    logger.info("Shutting down application...")

    await close_storage()

    logger.info("Application shutdown complete")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Multi-account image storage with local fallback",
        version=settings.app_version,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
        openapi_url="/openapi.json" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # ============ Middleware ============

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # ============ Exception Handlers ============
    setup_exception_handlers(app)

    # ============ Routers ============

    # Health check
    app.include_router(health_router, prefix="/api")

    # Image uploads
    app.include_router(uploads_router, prefix="/api")

    # Remote object proxy
    app.include_router(objects_router, prefix="/api")

    # Storage account status
    app.include_router(storage_router, prefix="/api")

    # Local fallback files
    app.include_router(local_files_router)

    # ============ Root Endpoint ============

    @app.get("/", tags=["root"])
    async def root():
        """Root endpoint with API information."""
        return {
            "name": settings.app_name,
            "version": settings.app_version,
            "docs": "/docs" if not settings.is_production else None,
            "health": "/api/health",
            "uploads": "/api/uploads",
            "storage_status": "/api/storage/status",
        }

    return app


# Create application instance
app = create_app()


def run():
    """Run the application with uvicorn (for development)."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
