"""
Demo weather tool.

Returns a canned forecast after a short simulated network delay so the
tool-calling loop can be exercised end to end without an external service.
"""

from __future__ import annotations

import asyncio

from pydantic import BaseModel, Field

from copilotkit_bridge.core.constants import WEATHER_TOOL_LATENCY
from copilotkit_bridge.tools.registry import Tool
from copilotkit_bridge.utils.json_utils import parse_json_object

WEATHER_TOOL_NAME = "get_weather"

WEATHER_PARAMETERS = {
    "type": "object",
    "properties": {
        "location": {
            "type": "string",
            "description": "City or place to look up. Examples: 'Paris', 'San Francisco, CA'",
        },
    },
    "required": ["location"],
}


class WeatherReport(BaseModel):
    """Forecast returned to the model as JSON text."""

    location: str
    temperature: int = 72
    conditions: str = "Sunny"
    wind_speed: str = "10 mph"
    humidity: str = "45%"

    def to_json(self) -> str:
        return self.model_dump_json()


class WeatherArguments(BaseModel):
    location: str = Field(min_length=1)


async def get_weather(arguments: str) -> str:
    """Look up the (simulated) weather for a location.

    Args:
        arguments: JSON object text with a ``location`` string

    Returns:
        WeatherReport JSON

    Raises:
        ValueError: If the arguments are not a JSON object with a location
    """
    parsed = parse_json_object(arguments)
    if parsed is None:
        raise ValueError("Arguments must be a JSON object with a 'location' string")

    location = parsed.get("location")
    if not isinstance(location, str) or not location.strip():
        raise ValueError("Missing required argument 'location'")

    args = WeatherArguments(location=location.strip())
    await asyncio.sleep(WEATHER_TOOL_LATENCY)
    return WeatherReport(location=args.location).to_json()


WEATHER_TOOL = Tool(
    name=WEATHER_TOOL_NAME,
    description="Get the current weather for a location. Call this whenever the user asks about weather.",
    parameters=WEATHER_PARAMETERS,
    executor=get_weather,
)


__all__ = ["WEATHER_TOOL", "WEATHER_TOOL_NAME", "WeatherReport", "get_weather"]
