"""
FastAPI application entry point.

This module creates and configures the FastAPI application.
The application factory (create_app) takes optional settings and an object
store so tests can build an app against the in-memory store.

For local development:
    uvicorn src.main:app --reload

For production:
    gunicorn src.main:app -w 4 -k uvicorn.workers.UvicornWorker
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .api.routes import files, health
from .config.settings import Settings, get_settings
from .infrastructure.storage import (
    ConfigError,
    ObjectStore,
    StorageError,
    StorageGateway,
    create_object_store,
)

# Configure logging
logging.basicConfig(
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    level=logging.INFO,
)

logger = logging.getLogger(__name__)


def build_storage_gateway(
    settings: Settings,
    store: Optional[ObjectStore] = None,
) -> StorageGateway:
    """
    Build the gateway from settings.

    Raises:
        ConfigError: Storage credentials are missing outside mock mode.
    """
    if store is None:
        missing_fields = settings.validate_required_fields()
        if missing_fields:
            logger.error(
                "Missing required configuration",
                extra={"missing_fields": missing_fields}
            )
            raise ConfigError(f"Missing required configuration: {', '.join(missing_fields)}")

        store = create_object_store(
            config=None if settings.r2_mock_mode else settings.storage_config(),
            mock_mode=settings.r2_mock_mode,
        )

    return StorageGateway(store)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Builds the shared storage gateway on startup. Missing credentials stop
    the application here rather than failing individual requests later.
    """
    settings: Settings = app.state.settings
    logging.getLogger().setLevel(settings.log_level.upper())

    logger.info(
        "Storage gateway API starting",
        extra={
            "version": __version__,
            "mock_mode": settings.r2_mock_mode,
        }
    )

    app.state.storage_gateway = build_storage_gateway(
        settings,
        store=getattr(app.state, "object_store", None),
    )

    yield

    app.state.storage_gateway = None
    logger.info("Storage gateway API shutting down")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ObjectStore] = None,
) -> FastAPI:
    """
    Application factory.

    Args:
        settings: Settings to use instead of the environment
        store: Object store to use instead of building one from settings
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=__version__,
        description="""
        Storage gateway for finished media downloads.

        ## Authentication

        File endpoints require an API key provided in the `X-API-Key` header.

        ## Workflow

        1. **Register a download**: `POST /api/v1/files`
        2. **Get a link**: `GET /api/v1/files/{task_id}/{file_name}/url`
           - Signed URLs are valid for one hour
        3. **Inspect**: `GET /api/v1/files/{task_id}/{file_name}/info`
        4. **Clean up**: `DELETE /api/v1/files/{task_id}/{file_name}`
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.object_store = store

    # Routes resolve settings through get_settings; point them at ours
    app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(
        health.router,
        prefix="/health",
        tags=["Health"],
    )

    app.include_router(
        files.router,
        prefix="/api/v1/files",
        tags=["Files"],
    )

    @app.get("/", include_in_schema=False)
    async def root():
        """Root endpoint - points at docs."""
        return {
            "message": settings.api_title,
            "version": __version__,
            "docs": "/docs",
            "health": "/health",
        }

    @app.exception_handler(StorageError)
    async def storage_exception_handler(request: Request, exc: StorageError):
        """The gateway already logged the cause; report which operation failed."""
        return JSONResponse(
            status_code=502,
            content={
                "detail": str(exc),
                "operation": exc.operation,
                "key": exc.key,
            }
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """
        Catch-all exception handler.

        Logs the full error server-side but returns a generic message.
        """
        logger.error(
            "Unhandled exception",
            extra={
                "path": request.url.path,
                "method": request.method,
                "error": str(exc),
            },
            exc_info=exc,
        )

        return JSONResponse(
            status_code=500,
            content={
                "detail": "Internal server error. Please contact support if this persists."
            }
        )

    return app


# Create the application instance
# This is what uvicorn/gunicorn will import
app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "src.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower(),
    )
