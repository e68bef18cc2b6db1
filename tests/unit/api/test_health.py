from __future__ import annotations

from typing import Any

import pytest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from copilotkit_bridge.api.routes.health import router
from copilotkit_bridge.tools.registry import ToolRegistry


@pytest.fixture
def app(settings: Any, default_registry: ToolRegistry) -> FastAPI:
    app = FastAPI()
    app.include_router(router)
    app.state.settings = settings
    app.state.tool_registry = default_registry
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


def test_liveness_check(client: TestClient) -> None:
    response = client.get("/health/live")
    assert response.status_code == 200
    assert response.json()["alive"] is True


def test_health_check(client: TestClient, settings: Any) -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "version": settings.app_version,
        "model": "gpt-4.1-mini",
        "tools": ["get_weather"],
    }


def test_health_degraded_without_tools(app: FastAPI, client: TestClient) -> None:
    app.state.tool_registry = ToolRegistry()

    response = client.get("/health")

    assert response.json()["status"] == "degraded"
