"""
Tool registry for the CopilotKit bridge.

Holds every tool the model may call, renders their OpenAI function schemas
and executes calls by name. Tools are registered once at startup and the
registry is frozen before serving requests.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from copilotkit_bridge.core.constants import ERROR_TOOL_FAILED, ERROR_TOOL_NOT_FOUND
from copilotkit_bridge.core.exceptions import ToolExecutionError, ToolNotFoundError
from copilotkit_bridge.utils.json_utils import json_compact

# Executors take the raw argument text the model produced and return result text
ToolExecutor = Callable[[str], Awaitable[str]]


@dataclass(frozen=True)
class Tool:
    """A callable capability exposed to the model."""

    name: str
    description: str
    parameters: dict[str, Any]
    executor: ToolExecutor

    def to_schema(self) -> dict[str, Any]:
        """OpenAI chat-completions tool parameter."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }


@dataclass(frozen=True)
class Ok:
    """Successful tool execution."""

    output: str

    @property
    def success(self) -> bool:
        return True

    def to_content(self) -> str:
        return self.output


@dataclass(frozen=True)
class Err:
    """Failed tool execution (unknown tool or executor error)."""

    error: str

    @property
    def success(self) -> bool:
        return False

    def to_content(self) -> str:
        """Error payload fed back to the model so it can recover."""
        return json_compact({"error": self.error})


ToolResult = Ok | Err


class ToolRegistry:
    """Name-keyed tool collection, read-only once frozen."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, tool: Tool) -> None:
        """Add a tool.

        Raises:
            RuntimeError: If the registry has been frozen
            ValueError: If a tool with the same name is already registered
        """
        if self._frozen:
            raise RuntimeError(f"Cannot register tool {tool.name}: registry is frozen")
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name} is already registered")
        self._tools[tool.name] = tool

    def freeze(self) -> None:
        self._frozen = True

    def list(self) -> list[Tool]:
        """Registered tools in registration order."""
        return list(self._tools.values())

    def names(self) -> list[str]:
        return list(self._tools)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def schemas(self) -> list[dict[str, Any]]:
        return [tool.to_schema() for tool in self._tools.values()]

    async def execute(self, name: str, arguments: str) -> str:
        """Run a tool by name.

        Raises:
            ToolNotFoundError: If no tool is registered under ``name``
            ToolExecutionError: If the tool's executor raises
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(name, ERROR_TOOL_NOT_FOUND.format(name=name))

        try:
            return await tool.executor(arguments)
        except Exception as e:
            raise ToolExecutionError(name, ERROR_TOOL_FAILED.format(name=name, error=e), cause=e) from e

    async def invoke(self, name: str, arguments: str) -> ToolResult:
        """Run a tool by name, absorbing lookup and execution errors into an Err."""
        try:
            return Ok(await self.execute(name, arguments))
        except (ToolNotFoundError, ToolExecutionError) as e:
            return Err(e.message)


def build_default_registry() -> ToolRegistry:
    """Registry with the bundled demo tools, frozen."""
    from copilotkit_bridge.tools.weather import WEATHER_TOOL

    registry = ToolRegistry()
    registry.register(WEATHER_TOOL)
    registry.freeze()
    return registry


__all__ = [
    "Err",
    "Ok",
    "Tool",
    "ToolExecutor",
    "ToolRegistry",
    "ToolResult",
    "build_default_registry",
]
