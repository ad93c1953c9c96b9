"""
Health check endpoints.

Provides endpoints for monitoring application health and readiness.
"""

from fastapi import APIRouter
from pydantic import BaseModel

from shared.config import get_settings
from shared.database import get_supabase_client

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str


class ReadinessResponse(BaseModel):
    """Readiness check response model."""

    status: str
    database: str
    payments: str


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """
    Basic health check endpoint.

    Returns 200 if the API is running.
    """
    return HealthResponse(status="healthy", version=get_settings().app_version)


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check() -> ReadinessResponse:
    """
    Readiness check endpoint.

    Reports whether the database client is initialized and Stripe is configured.
    """
    settings = get_settings()
    try:
        get_supabase_client()
        database = "connected"
    except RuntimeError:
        database = "unavailable"

    payments = "configured" if settings.stripe_secret_key and settings.stripe_webhook_secret else "unconfigured"
    status = "ready" if database == "connected" and payments == "configured" else "degraded"

    return ReadinessResponse(status=status, database=database, payments=payments)
