"""FastAPI application for AnchorTrust."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from anchortrust import __version__
from anchortrust.config import Settings
from anchortrust.exceptions import (
    AnchorTrustError,
    InvalidAllocationError,
    MissingAnchorError,
    NotFoundError,
    ValidationError,
)
from anchortrust.logging import configure_logging, get_logger
from anchortrust.service import TrustService
from anchortrust.storage import InMemoryTrustStore

from .router import router, set_service

logger = get_logger(__name__)


def _lifespan_for(settings: Settings):  # type: ignore[no-untyped-def]
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Create the TrustService on startup and drop it on shutdown."""
        configure_logging(level=settings.log_level, format=settings.log_format)
        logger.info(
            "Starting AnchorTrust API",
            log_level=settings.log_level,
            scoring_mode=settings.scoring_mode,
        )

        store = InMemoryTrustStore(anchor_id=settings.anchor_id)
        if settings.anchor_id is not None:
            store.add_participant(settings.anchor_id)
        set_service(TrustService(source=store, sink=store, settings=settings), store=store)

        yield

        set_service(None)
        logger.info("AnchorTrust API stopped")

    return lifespan


def register_exception_handlers(app: FastAPI) -> None:
    """Map the AnchorTrust exception hierarchy onto HTTP statuses."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        """Handle validation errors with 400 status."""
        logger.warning("Validation error", field=exc.field, error=exc.message, path=str(request.url))
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(InvalidAllocationError)
    async def invalid_allocation_handler(
        request: Request, exc: InvalidAllocationError
    ) -> JSONResponse:
        """Handle rejected allocations and unknown participants with 400 status."""
        logger.warning("Invalid allocation", code=exc.code, error=exc.message, path=str(request.url))
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(MissingAnchorError)
    async def missing_anchor_handler(request: Request, exc: MissingAnchorError) -> JSONResponse:
        """Handle a missing anchor with 400 status."""
        logger.warning("Missing anchor", anchor_id=exc.anchor_id, path=str(request.url))
        return JSONResponse(status_code=400, content=exc.to_dict())

    @app.exception_handler(NotFoundError)
    async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        """Handle not found errors with 404 status."""
        logger.info(
            "Resource not found",
            resource_type=exc.resource_type,
            resource_id=exc.resource_id,
            path=str(request.url),
        )
        return JSONResponse(status_code=404, content=exc.to_dict())

    @app.exception_handler(AnchorTrustError)
    async def anchortrust_error_handler(request: Request, exc: AnchorTrustError) -> JSONResponse:
        """Handle divergence and all other errors with 500 status."""
        logger.error("AnchorTrust error", error=exc.message, code=exc.code, path=str(request.url))
        return JSONResponse(status_code=500, content=exc.to_dict())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create a FastAPI application.

    Args:
        settings: Optional settings. Uses environment if None.

    Example:
        ```python
        from anchortrust.api import create_app

        app = create_app()
        # Run with: uvicorn anchortrust.api:app --reload
        ```
    """
    if settings is None:
        settings = Settings()

    app = FastAPI(
        title="AnchorTrust",
        description="Anchored EigenTrust reputation engine.",
        version=__version__,
        lifespan=_lifespan_for(settings),
        docs_url="/docs",
        redoc_url="/redoc",
    )

    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_allow_origins,
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
        )

    register_exception_handlers(app)
    app.include_router(router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
