from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from copilotkit_bridge.api.services.copilot_service import CopilotService
from copilotkit_bridge.core.constants import Settings
from copilotkit_bridge.tools.registry import ToolRegistry


def get_app_settings(request: Request) -> Settings:
    """Provide the settings the application was started with.

    Usage in routes:
        @router.get("/example")
        async def example(settings: AppSettings):
            return {"debug": settings.debug}
    """
    return request.app.state.settings


def get_copilot_service(request: Request) -> CopilotService:
    """Get the CopilotKit service from application state."""
    return request.app.state.copilot_service


def get_tool_registry(request: Request) -> ToolRegistry:
    """Get the frozen tool registry from application state."""
    return request.app.state.tool_registry


# Type aliases for cleaner route signatures
AppSettings = Annotated[Settings, Depends(get_app_settings)]
Copilot = Annotated[CopilotService, Depends(get_copilot_service)]
Tools = Annotated[ToolRegistry, Depends(get_tool_registry)]
