"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from modules.auth.exceptions import SessionNotReadyError
from modules.auth.models import SessionStatus
from shared.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    FamfinError,
    NotFoundError,
    ValidationError,
)

from .config import get_settings
from .dependencies import get_container
from .models.errors import ErrorResponse
from .routes import auth, family, health, resources

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Mounts the session on startup and unmounts it on shutdown.
    """
    settings = get_settings()
    container = get_container()
    logger.info(f"Starting Famfin API on {settings.host}:{settings.port}")
    await container.startup()
    yield
    logger.info("Shutting down Famfin API")
    await container.shutdown()


def status_code_for(exc: FamfinError) -> int:
    """Map an error class to the HTTP status it is rendered with."""
    if isinstance(exc, SessionNotReadyError):
        if exc.status == SessionStatus.LOADING:
            return status.HTTP_503_SERVICE_UNAVAILABLE
        if exc.status == SessionStatus.UNAUTHENTICATED:
            return status.HTTP_401_UNAUTHORIZED
        return status.HTTP_409_CONFLICT
    if isinstance(exc, NotFoundError):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, ValidationError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, AuthenticationError):
        return status.HTTP_401_UNAUTHORIZED
    if isinstance(exc, ExternalServiceError):
        return status.HTTP_502_BAD_GATEWAY
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def famfin_error_handler(request: Request, exc: FamfinError) -> JSONResponse:
    """Render FamfinError as an ErrorResponse."""
    status_code = status_code_for(exc)
    if status_code >= 500 and status_code != status.HTTP_503_SERVICE_UNAVAILABLE:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")

    headers = None
    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        headers = {"Retry-After": str(get_settings().retry_after_seconds)}

    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(**exc.to_dict()).model_dump(),
        headers=headers,
    )


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title="Famfin API",
        description="Family finance session and data API",
        version="0.1.0",
        lifespan=lifespan,
        docs_url="/api/docs" if settings.debug else None,
        redoc_url="/api/redoc" if settings.debug else None,
    )

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    app.add_exception_handler(FamfinError, famfin_error_handler)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
    app.include_router(family.router, prefix="/api/family", tags=["family"])
    app.include_router(resources.router, prefix="/api/resources", tags=["resources"])

    return app


# Application instance for uvicorn
app = create_app()
