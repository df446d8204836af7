"""
Media storage API.

Upload, list, retrieve and delete media files kept in a local directory or
a Google Cloud Storage bucket.
"""
from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.config import Settings, get_settings
from api.routers import files, health
from api.utils.error_handlers import (
    general_exception_handler,
    http_exception_handler,
    storage_exception_handler,
    validation_exception_handler,
)
from api.utils.logger import setup_logging
from storage import create_storage_backend
from storage.exceptions import StorageError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting media storage API",
        version=settings.VERSION,
        profile=settings.storage_profile,
        storage=repr(app.state.storage),
    )

    yield

    logger.info("Shutting down media storage API")
    await app.state.storage.cleanup()


def create_application(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The storage backend is chosen here, once, from the active profile and
    attached to ``app.state`` for injection into request handlers.
    """
    settings = settings or get_settings()
    setup_logging(settings)

    application = FastAPI(
        title="Media Storage API",
        description="Upload, list, retrieve and delete media files",
        version=settings.VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        openapi_url="/openapi.json" if settings.DEBUG else None,
        lifespan=lifespan,
    )
    application.state.settings = settings
    application.state.storage = create_storage_backend(settings.storage_backend_config)

    _configure_middleware(application, settings)
    _configure_exception_handlers(application)
    _configure_routes(application)

    if settings.ENABLE_METRICS:
        metrics_app = make_asgi_app()
        application.mount("/metrics", metrics_app)

    return application


def _configure_middleware(application: FastAPI, settings: Settings) -> None:
    """Configure middleware stack."""
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition"],
        max_age=600,  # Cache preflight requests
    )


def _configure_exception_handlers(application: FastAPI) -> None:
    """Configure centralized exception handling."""
    application.add_exception_handler(StorageError, storage_exception_handler)
    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(StarletteHTTPException, http_exception_handler)
    application.add_exception_handler(Exception, general_exception_handler)


def _configure_routes(application: FastAPI) -> None:
    """Configure API routes."""
    application.include_router(files.router, tags=["files"])
    application.include_router(health.router, tags=["health"])


def main() -> None:
    """Main entry point for production server."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "api.main:create_application",
        factory=True,
        host=settings.API_HOST,
        port=settings.API_PORT,
        workers=1 if settings.DEBUG else settings.API_WORKERS,
        reload=settings.API_RELOAD,
        log_config=None,  # Use structured logging
        server_header=False,
    )


if __name__ == "__main__":
    main()
