"""
Tools Module - Function Calling Capabilities for the CopilotKit bridge
=======================================================================

Modules:
    registry: Tool dataclass, typed results and the ToolRegistry
    weather: Demo ``get_weather`` tool returning a canned forecast

Example:
    Building the registry served by the API::

        from copilotkit_bridge.tools import build_default_registry

        registry = build_default_registry()
        registry.schemas()  # OpenAI tool parameters
        await registry.invoke("get_weather", '{"location": "Paris"}')
"""

from __future__ import annotations

from copilotkit_bridge.tools.registry import (
    Err,
    Ok,
    Tool,
    ToolRegistry,
    ToolResult,
    build_default_registry,
)

__all__ = ["Err", "Ok", "Tool", "ToolRegistry", "ToolResult", "build_default_registry"]
