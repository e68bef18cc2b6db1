"""
Health check endpoints.

Liveness probe plus a summary of the configured model and registered tools.
"""

from __future__ import annotations

from fastapi import APIRouter

from copilotkit_bridge.api.dependencies import AppSettings, Tools
from copilotkit_bridge.models.health_models import HealthResponse, LivenessResponse

router = APIRouter()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Configured model, registered tools and application version.",
    tags=["Health"],
)
async def health_check(settings: AppSettings, registry: Tools) -> HealthResponse:
    """Service health summary."""
    tools = registry.names()
    return HealthResponse(
        status="healthy" if tools else "degraded",
        version=settings.app_version,
        model=settings.openai_model,
        tools=tools,
    )


@router.get(
    "/health/live",
    response_model=LivenessResponse,
    summary="Liveness probe",
    description="Kubernetes-style liveness probe to confirm process is running.",
    tags=["Health"],
)
async def liveness_check() -> LivenessResponse:
    """Kubernetes-style liveness probe."""
    return LivenessResponse(alive=True)
