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
from shared.database import init_supabase_client, reset_client_cache
from shared.exceptions import SubledgerError
from .routes import health
from modules.billing.routes import router as billing_router
from modules.products.routes import router as products_router

logger = logging.getLogger(__name__)


async def subledger_error_handler(request: Request, exc: SubledgerError) -> JSONResponse:
    """Render domain errors as {"error", "message", "details"} bodies."""
    status_code = exc.http_status
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
    return JSONResponse(status_code=status_code, content=exc.to_dict())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Never leak internals; log and return a bare 500."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"error": "INTERNAL_ERROR", "message": "Internal server error", "details": {}},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Runs startup and shutdown logic.
    """
    # Startup
    settings = get_settings()
    logger.info(f"Starting Subledger API on {settings.host}:{settings.port}")
    if settings.supabase_url:
        await init_supabase_client()
    else:
        logger.warning("SUPABASE_URL is not set. Database-backed endpoints will be unavailable.")
    yield
    # Shutdown
    reset_client_cache()
    logger.info("Shutting down Subledger API")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        Configured FastAPI instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Accounts and subscription billing API",
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

    app.add_exception_handler(SubledgerError, subledger_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # Register routes
    app.include_router(health.router, prefix="/api", tags=["health"])
    app.include_router(products_router, prefix="/api/products", tags=["products"])
    if settings.enable_billing:
        app.include_router(billing_router, prefix="/api/billing", tags=["billing"])

    return app


# Application instance for uvicorn
app = create_app()
