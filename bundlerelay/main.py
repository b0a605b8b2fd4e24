"""
BundleRelay FastAPI application entry point.

Check-in flow: request → version match → candidate filter → decision → rollout gate → signed fileUrl
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bundlerelay import __version__
from bundlerelay.config import Settings, get_settings
from bundlerelay.db.session import check_db_connection, engine
from bundlerelay.errors import (
    InputError,
    StorageError,
    TokenError,
    input_error_handler,
    storage_error_handler,
    token_error_handler,
)
from bundlerelay.storage.object_store import LocalObjectStore
from bundlerelay.storage.registry import StorageRegistry
from bundlerelay.storage.store_plugin import StoreStoragePlugin

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown."""
    logger.info("BundleRelay starting")
    try:
        try:
            check_db_connection()
            logger.info("Database connection verified")
        except Exception as e:
            logger.critical("Database unreachable: %s", e)
            raise
        yield
    finally:
        logger.info("BundleRelay shutting down")
        engine.dispose()
        logger.info("Database connection pool closed")


def build_storage_registry(settings: Settings) -> StorageRegistry:
    """Register storage adapters once. http(s) URIs need no adapter."""
    registry = StorageRegistry()
    if settings.jwt_secret:
        registry.register(
            StoreStoragePlugin(
                public_base_url=settings.public_base_url,
                secret=settings.jwt_secret,
                ttl_seconds=settings.delivery_token_ttl_seconds,
            )
        )
    else:
        logger.warning("JWT_SECRET not set: storage:// bundles and /files downloads are disabled")
    return registry


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
    )

    app.state.storage_registry = build_storage_registry(settings)
    app.state.object_store = LocalObjectStore(settings.storage_root)

    app.add_exception_handler(InputError, input_error_handler)
    app.add_exception_handler(TokenError, token_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)

    # Mount API routes
    from bundlerelay.api.bundles import router as bundles_router
    from bundlerelay.api.check_update import router as check_update_router
    from bundlerelay.api.files import router as files_router
    from bundlerelay.api.track import router as track_router

    app.include_router(check_update_router, prefix="/api/check-update", tags=["check-update"])
    app.include_router(bundles_router, prefix="/api/bundles", tags=["bundles"])
    app.include_router(track_router, prefix="/api/track", tags=["track"])
    if settings.jwt_secret:
        app.include_router(files_router, prefix="/files", tags=["files"])

    @app.get("/api/version")
    def version() -> dict:
        return {"version": __version__}

    @app.get("/health")
    def health() -> dict:
        """Health check endpoint. Confirms DB connectivity."""
        from sqlalchemy import text

        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return {
                "status": "ok",
                "version": __version__,
                "database": "connected",
            }
        except Exception:
            from fastapi.responses import JSONResponse

            return JSONResponse(
                status_code=503,
                content={
                    "status": "unhealthy",
                    "version": __version__,
                    "database": "disconnected",
                },
            )

    return app


app = create_app()
