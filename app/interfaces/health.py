"""
Health check router.

Provides a root liveness endpoint and a health endpoint for readiness
probes. No business logic. Returns application status and version.
"""

from fastapi import APIRouter

from app.core.config import settings
from app.interfaces.resources.schemas import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/", summary="Liveness check")
def root() -> dict[str, bool]:
    """Return a constant payload while the process is serving."""
    return {"ok": True}


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Returns application health status and version.",
)
def health_check() -> HealthResponse:
    """Return current application health status."""
    return HealthResponse(status="ok", version=settings.version)
