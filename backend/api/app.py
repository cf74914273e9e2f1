"""
FastAPI application factory.

Creates and configures the FastAPI application instance.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import get_settings
from shared.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ExpiredError,
    IntegrityViolationError,
    NotFoundError,
    StorageError,
    TenureError,
    ValidationError,
)
from .dependencies import get_container
from .routes import health
from modules.access.routes import router as access_router
from modules.admin.routes import router as admin_router
from modules.payments.routes import router as payments_router

logger = logging.getLogger(__name__)

# Checked in order; the first matching base decides the status code
ERROR_STATUS_CODES: list[tuple[type[TenureError], int]] = [
    (NotFoundError, 404),
    (AuthenticationError, 401),
    (AuthorizationError, 403),
    (ConflictError, 409),
    (IntegrityViolationError, 409),
    (ExpiredError, 410),
    (ValidationError, 400),
    (StorageError, 503),
]


def status_code_for(error: TenureError) -> int:
    for error_type, status_code in ERROR_STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 500


async def tenure_error_handler(request: Request, exc: TenureError) -> JSONResponse:
    """Render a TenureError as a JSON error body with a matching status."""
    status_code = status_code_for(exc)

    if isinstance(exc, AuthenticationError):
        return JSONResponse(
            status_code=status_code,
            content=exc.to_dict(),
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(exc, IntegrityViolationError):
        logger.error("Integrity violation on %s %s: %s %s", request.method, request.url.path, exc.code, exc.details)
    elif status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.details)
        # Storage details can carry driver messages; keep them out of the response
        return JSONResponse(
            status_code=status_code,
            content={
                "error": exc.code,
                "message": "The request could not be completed. Please retry, or contact support if it keeps failing.",
                "details": {},
            },
        )

    return JSONResponse(status_code=status_code, content=exc.to_dict())


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(
        "Starting %s on %s:%s (storage=%s)",
        settings.app_name,
        settings.host,
        settings.port,
        settings.storage_backend,
    )
    container = get_container()
    background = [container.payment_sweeper]
    if container.confirmation_poller is not None:
        background.append(container.confirmation_poller)
    for task in background:
        task.start()
    yield
    # Shutdown
    for task in background:
        await task.stop()
    await container.aclose()
    logger.info("Shutting down %s", settings.app_name)


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Entitlement reconciliation API: codes, payments, trials and admin grants",
        version=settings.app_version,
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

    app.add_exception_handler(TenureError, tenure_error_handler)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(access_router, prefix="/api/access", tags=["access"])
    app.include_router(payments_router, prefix="/api/payments", tags=["payments"])
    app.include_router(admin_router, prefix="/api/admin", tags=["admin"])

    return app


# Application instance for uvicorn
app = create_app()
