"""Health check router for the ropee gateway.

This module provides health check endpoints for monitoring
and load balancer integration.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Request, status
from pydantic import BaseModel

from ropee import __version__

router = APIRouter(prefix="/health", tags=["health"])


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    timestamp: datetime
    version: str


class ReadinessResponse(HealthResponse):
    """Readiness response model with backend component status."""

    backend: str
    components: dict[str, str]


@router.get(
    "",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Basic health check",
)
async def health_check() -> HealthResponse:
    """Basic health check endpoint.

    Returns:
        Health status and version

    Example:
        GET /health
        {
            "status": "healthy",
            "version": "0.1.0"
        }
    """
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
    )


@router.get(
    "/ready",
    response_model=ReadinessResponse,
    status_code=status.HTTP_200_OK,
    summary="Readiness check",
)
async def readiness_check(request: Request) -> ReadinessResponse:
    """Readiness check for load balancers.

    The gateway is ready when the shared write client was constructed.
    Read clients are built per request and are not checked here.

    Example:
        GET /health/ready
        {
            "status": "ready",
            "backend": "splunk",
            "components": {"write_client": "ready"}
        }
    """
    write_ready = getattr(request.app.state, "write_client", None) is not None
    return ReadinessResponse(
        status="ready" if write_ready else "degraded",
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        backend=request.app.state.settings.backend,
        components={"write_client": "ready" if write_ready else "unavailable"},
    )
