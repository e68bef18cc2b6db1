"""Tests for the demo weather tool."""

from __future__ import annotations

import json

from unittest.mock import AsyncMock, patch

import pytest

from copilotkit_bridge.core.constants import WEATHER_TOOL_LATENCY
from copilotkit_bridge.tools.weather import WEATHER_TOOL, get_weather


@pytest.mark.asyncio
async def test_returns_canned_forecast() -> None:
    with patch("copilotkit_bridge.tools.weather.asyncio.sleep", new_callable=AsyncMock) as sleep:
        result = await get_weather('{"location": "Tokyo"}')

    sleep.assert_awaited_once_with(WEATHER_TOOL_LATENCY)
    assert json.loads(result) == {
        "location": "Tokyo",
        "temperature": 72,
        "conditions": "Sunny",
        "wind_speed": "10 mph",
        "humidity": "45%",
    }


@pytest.mark.asyncio
@pytest.mark.parametrize("arguments", ["not json", "[]", "{}", '{"location": ""}', '{"location": 5}'])
async def test_invalid_arguments_raise(arguments: str) -> None:
    with pytest.raises(ValueError):
        await get_weather(arguments)


@pytest.mark.asyncio
async def test_registered_tool_failure_becomes_error_result(default_registry) -> None:  # type: ignore[no-untyped-def]
    result = await default_registry.invoke("get_weather", "{}")

    assert not result.success
    assert "Tool get_weather failed" in json.loads(result.to_content())["error"]


def test_tool_metadata() -> None:
    assert WEATHER_TOOL.name == "get_weather"
    assert WEATHER_TOOL.parameters["properties"]["location"]["type"] == "string"
