"""Shared test fixtures for the CopilotKit bridge test suite.

Provides test settings via environment, a scripted ChatModel fake and
tool registry fixtures.
"""

from __future__ import annotations

import os

from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock

import pytest

from fakes import WEATHER_RESULT

# ============================================================================
# EARLY INITIALIZATION: Runs before test collection
# ============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Provide required configuration before any test modules are imported.

    Module-level imports create the logger and may load settings, so the
    credential and file-logging switches must be in the environment first.
    """
    os.environ.setdefault("OPENAI_API_KEY", "test-openai-key")
    os.environ["APP_ENV"] = "test"
    os.environ["LOG_TO_FILE"] = "false"


# ============================================================================
# Test Isolation: Settings cache
# ============================================================================


@pytest.fixture(autouse=True)
def clear_settings() -> Generator[None, None, None]:
    """Reset cached settings so environment changes in one test don't leak."""
    from copilotkit_bridge.core.constants import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings() -> Any:
    from copilotkit_bridge.core.constants import Settings

    return Settings(openai_api_key="test-openai-key", app_env="test")


# ============================================================================
# Tool registries
# ============================================================================


@pytest.fixture
def weather_executor() -> AsyncMock:
    """Recording stand-in for the weather tool executor."""
    return AsyncMock(return_value=WEATHER_RESULT)


@pytest.fixture
def registry(weather_executor: AsyncMock) -> Any:
    """Frozen registry with a recording ``get_weather`` tool."""
    from copilotkit_bridge.tools.registry import Tool, ToolRegistry
    from copilotkit_bridge.tools.weather import WEATHER_PARAMETERS

    registry = ToolRegistry()
    registry.register(
        Tool(
            name="get_weather",
            description="Get the current weather for a location.",
            parameters=WEATHER_PARAMETERS,
            executor=weather_executor,
        )
    )
    registry.freeze()
    return registry


@pytest.fixture
def default_registry() -> Any:
    from copilotkit_bridge.tools.registry import build_default_registry

    return build_default_registry()
