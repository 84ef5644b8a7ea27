"""Health check routers: the RPC ping and the plain probe endpoints."""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.clock import utcnow
from ..core.config import settings
from ..core.dependencies import DatabaseSession
from ..core.observability import SERVICE_NAME
from ..schemas.health import HealthResponse, HealthStatus

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

router = APIRouter(prefix="/v1/health", tags=["health"])

# Unprefixed endpoints for load balancers and orchestrators
probe_router = APIRouter(tags=["Health"])


@router.post("/ping", response_model=HealthResponse)
async def health_ping() -> JSONResponse:
    """
    Health check endpoint.

    Returns current service status and timestamp.
    """
    response_data = HealthResponse(
        status=HealthStatus.HEALTHY,
        service=SERVICE_NAME,
        timestamp=utcnow(),
        version=API_VERSION,
    )

    logger.debug(
        "Health check requested",
        extra={
            "status": response_data.status,
            "timestamp": response_data.timestamp.isoformat()
        }
    )

    return JSONResponse(
        status_code=200,
        content=response_data.model_dump(mode="json")
    )


@probe_router.get("/health", status_code=status.HTTP_200_OK, summary="Liveness probe")
async def liveness() -> dict:
    return {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": API_VERSION,
        "environment": settings.environment,
    }


@probe_router.get("/ready", summary="Readiness probe")
async def readiness(db: AsyncSession = DatabaseSession) -> JSONResponse:
    """Ready once the database answers a trivial query."""
    try:
        await db.execute(text("SELECT 1"))
        database = "ok"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Readiness check failed", extra={"error": str(e)})
        database = "unavailable"

    ready = database == "ok"
    return JSONResponse(
        status_code=200 if ready else 503,
        content={
            "status": "ready" if ready else "not_ready",
            "service": SERVICE_NAME,
            "checks": {"database": database},
        },
    )


@probe_router.get("/info", summary="Service information")
async def service_info() -> dict:
    return {
        "service": SERVICE_NAME,
        "version": API_VERSION,
        "description": "Venue booking engine for hotels: conflicts, capacity, snapshot pricing and booking lifecycle",
        "environment": settings.environment,
        "features": {
            "authentication": True,
            "conflict_detection": True,
            "snapshot_pricing": True,
            "audit_log": True,
            "public_booking_requests": True,
            "problem_details": True,
        },
        "endpoints": {
            "health": "/health",
            "readiness": "/ready",
            "info": "/info",
            "metrics": "/metrics",
            "docs": "/docs" if settings.debug else None,
        },
    }
