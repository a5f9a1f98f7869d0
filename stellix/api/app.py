"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from stellix.api.routes import admin, channels, health, preferences, staging, stats
from stellix.config import VERSION, Config
from stellix.core.exceptions import CatalogConflictError, NotFoundError, StoreError, ValidationError
from stellix.database import init_db
from stellix.utilities.logging import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler - runs on startup and shutdown."""
    setup_logging()
    logger.info("Starting Stellix %s...", VERSION)

    init_db(Config.DATABASE_PATH)
    logger.info("Database ready at %s (URL match policy: %s)", Config.DATABASE_PATH, Config.URL_MATCH_POLICY)

    yield

    logger.info("Stellix stopped")


def _error_handler(status_code: int, level: int = logging.INFO):
    def handler(request: Request, exc: Exception) -> JSONResponse:
        logger.log(level, "%s %s -> %d: %s", request.method, request.url.path, status_code, exc)
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Stellix API",
        description="Curated IPTV channel catalog",
        version=VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Most specific first; handlers are looked up along the exception's MRO
    app.add_exception_handler(NotFoundError, _error_handler(status.HTTP_404_NOT_FOUND))
    app.add_exception_handler(ValidationError, _error_handler(status.HTTP_400_BAD_REQUEST))
    app.add_exception_handler(CatalogConflictError, _error_handler(status.HTTP_409_CONFLICT))
    app.add_exception_handler(
        StoreError, _error_handler(status.HTTP_503_SERVICE_UNAVAILABLE, logging.ERROR)
    )
    app.add_exception_handler(ValueError, _error_handler(status.HTTP_400_BAD_REQUEST))

    app.include_router(health.router, tags=["Health"])
    app.include_router(channels.router, prefix="/api/v1/channels", tags=["Channels"])
    app.include_router(admin.router, prefix="/api/v1/admin", tags=["Admin"])
    app.include_router(staging.router, prefix="/api/v1/staging", tags=["Staging"])
    app.include_router(preferences.router, prefix="/api/v1/preferences", tags=["Preferences"])
    app.include_router(stats.router, prefix="/api/v1/stats", tags=["Stats"])

    return app


app = create_app()
