"""
Health check API schemas.

Response models for the liveness probe and the service health summary.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LivenessResponse(BaseModel):
    """Liveness probe response."""

    alive: bool = Field(default=True, description="Process is running")


class HealthResponse(BaseModel):
    """Service health summary."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "version": "1.0.0",
                "model": "gpt-4.1-mini",
                "tools": ["get_weather"],
            }
        }
    )

    status: Literal["healthy", "degraded"] = Field(..., description="Overall service status")
    version: str = Field(..., description="Application version")
    model: str = Field(..., description="Chat completion model in use")
    tools: list[str] = Field(default_factory=list, description="Registered tool names")


__all__ = ["HealthResponse", "LivenessResponse"]
