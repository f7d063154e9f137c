"""Decor catalogue API main application module.

This module builds the FastAPI application and configures core
middleware, routers, exception handlers and startup/shutdown events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.api.categories import admin_router as admin_categories_router
from storefront.api.categories import router as categories_router
from storefront.api.health import router as health_router
from storefront.api.middleware import setup_middleware
from storefront.api.products import admin_router as admin_products_router
from storefront.api.products import router as products_router
from storefront.api.quotes import admin_router as admin_quotes_router
from storefront.api.quotes import router as quote_requests_router
from storefront.domain.exceptions import (
    CategoryConflictError,
    CategoryCycleError,
    CategoryNotFoundError,
    DomainError,
    EmailDeliveryError,
    EmptyQuoteError,
    HasChildrenError,
    InvalidCategoryNameError,
    InvalidForSendError,
    InvalidStateTransitionError,
    MissingRecipientError,
    ProductNotFoundError,
    QuoteNotFoundError,
)
from storefront.infrastructure.config import Settings, settings
from storefront.infrastructure.database import Database
from storefront.infrastructure.email_client import BrevoEmailClient
from storefront.infrastructure.log_config import configure_logging

logger = structlog.get_logger()

# Domain error -> HTTP status; unlisted domain errors are 400
DOMAIN_ERROR_STATUS: dict[type[DomainError], int] = {
    CategoryNotFoundError: status.HTTP_404_NOT_FOUND,
    ProductNotFoundError: status.HTTP_404_NOT_FOUND,
    QuoteNotFoundError: status.HTTP_404_NOT_FOUND,
    HasChildrenError: status.HTTP_400_BAD_REQUEST,
    InvalidCategoryNameError: status.HTTP_400_BAD_REQUEST,
    CategoryCycleError: status.HTTP_400_BAD_REQUEST,
    EmptyQuoteError: status.HTTP_400_BAD_REQUEST,
    InvalidForSendError: status.HTTP_400_BAD_REQUEST,
    MissingRecipientError: status.HTTP_400_BAD_REQUEST,
    CategoryConflictError: status.HTTP_409_CONFLICT,
    InvalidStateTransitionError: status.HTTP_409_CONFLICT,
    EmailDeliveryError: status.HTTP_502_BAD_GATEWAY,
}


def status_for(exc: DomainError) -> int:
    """HTTP status for a domain error (most specific class wins)."""
    for cls in type(exc).__mro__:
        if cls in DOMAIN_ERROR_STATUS:
            return DOMAIN_ERROR_STATUS[cls]
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Handle application startup and shutdown events.

    Args:
        app: The FastAPI application instance.

    Yields:
        None after startup, cleanup happens after yield.
    """
    app_settings: Settings = app.state.settings
    configure_logging(app_settings)

    # Startup
    logger.info(
        "Starting decor catalogue API",
        version=app_settings.api_version,
        debug=app_settings.debug,
    )

    database = Database(app_settings.database_url, echo=app_settings.debug)
    if app_settings.create_tables_on_startup:
        await database.create_all()
    app.state.database = database

    if getattr(app.state, "email_client", None) is None:
        app.state.email_client = BrevoEmailClient.from_settings(app_settings)
        if not app.state.email_client.configured:
            logger.warning("Email provider not configured, quote emails will fail")

    yield

    # Shutdown
    logger.info("Shutting down decor catalogue API")
    close = getattr(app.state.email_client, "aclose", None)
    if close is not None:
        await close()
    await database.dispose()


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        app_settings: Settings to use; the environment settings by default.

    Returns:
        Configured application. Its database and email client are created
        by the lifespan; tests may preset ``app.state.email_client``.
    """
    app_settings = app_settings or settings
    app = FastAPI(
        title="Decor Catalogue API",
        description="Catalogue, category tree and quote backend for an event-decor rental business",
        version=app_settings.api_version,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = app_settings
    app.state.email_client = None

    # CORS middleware (must be added before custom middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Setup custom middleware (request ID, admin auth, error handling)
    setup_middleware(app)

    # Include routers
    app.include_router(health_router, tags=["Health"])
    app.include_router(categories_router)
    app.include_router(products_router)
    app.include_router(quote_requests_router)
    app.include_router(admin_categories_router)
    app.include_router(admin_products_router)
    app.include_router(admin_quotes_router)

    register_exception_handlers(app)
    return app


# ============================================================================
# Custom Exception Handlers
# ============================================================================


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain and HTTP errors to the standard error body."""

    @app.exception_handler(DomainError)
    async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
        """Handle domain errors with consistent format."""
        status_code = status_for(exc)
        log = logger.error if status_code >= 500 else logger.info
        log(
            "Domain error",
            error_code=exc.error_code,
            status_code=status_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=status_code,
            content=jsonable_encoder(
                {
                    "error_code": exc.error_code,
                    "message": exc.message,
                    "details": exc.details,
                    "request_id": getattr(request.state, "request_id", None),
                }
            ),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Handle HTTP exceptions with consistent format."""
        request_id = getattr(request.state, "request_id", None)

        # Extract error details from exception
        detail = exc.detail
        if isinstance(detail, dict):
            error_code = detail.get("error_code", "ERROR")
            message = detail.get("message", str(detail))
            details = detail.get("details", {})
        else:
            error_code = "ERROR"
            message = str(detail)
            details = {}

        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error_code": error_code,
                "message": message,
                "details": details,
                "request_id": request_id,
            },
            headers=getattr(exc, "headers", None),
        )


app = create_app()
