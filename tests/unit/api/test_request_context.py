"""Tests for request context propagation."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from copilotkit_bridge.api.middleware.request_context import (
    RequestContext,
    RequestContextMiddleware,
    clear_request_context,
    generate_request_id,
    get_request_context,
    get_request_id,
    set_request_context,
    update_request_context,
)


def test_generate_request_id_format() -> None:
    request_id = generate_request_id()
    assert request_id.startswith("req_")
    assert len(request_id) == len("req_") + 16
    assert generate_request_id() != request_id


def test_context_lifecycle() -> None:
    set_request_context(RequestContext(request_id="req_1", path="/copilotkit", method="POST"))
    try:
        update_request_context(thread_id="thread-1", attempt=2)

        ctx = get_request_context()
        assert ctx is not None
        assert get_request_id() == "req_1"
        log_ctx = ctx.to_log_context()
        assert log_ctx["thread_id"] == "thread-1"
        assert log_ctx["attempt"] == 2
        assert log_ctx["path"] == "/copilotkit"
    finally:
        clear_request_context()

    assert get_request_context() is None
    assert get_request_id() is None


def test_update_without_context_is_noop() -> None:
    update_request_context(thread_id="ignored")
    assert get_request_context() is None


def test_middleware_exposes_context_to_handlers() -> None:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)

    @app.get("/ctx")
    async def ctx() -> dict[str, str | None]:
        context = get_request_context()
        assert context is not None
        return {"request_id": context.request_id, "client_ip": context.client_ip}

    response = TestClient(app).get("/ctx", headers={"X-Forwarded-For": "203.0.113.9, 10.0.0.1"})

    body = response.json()
    assert body["client_ip"] == "203.0.113.9"
    assert body["request_id"] == response.headers["x-request-id"]


def test_clearing_with_token_restores_outer_context() -> None:
    outer = set_request_context(RequestContext(request_id="req_outer"))
    inner = set_request_context(RequestContext(request_id="req_inner"))

    clear_request_context(inner)
    assert get_request_id() == "req_outer"

    clear_request_context(outer)
    assert get_request_context() is None


def test_middleware_reuses_upstream_request_id() -> None:
    app = FastAPI()
    app.add_middleware(RequestContextMiddleware)

    @app.get("/ctx")
    async def ctx() -> dict[str, str | None]:
        return {"request_id": get_request_id()}

    response = TestClient(app).get("/ctx", headers={"X-Request-ID": "req_upstream"})

    assert response.json() == {"request_id": "req_upstream"}
    assert response.headers["x-request-id"] == "req_upstream"
    assert response.headers["x-response-time"].endswith("ms")
    assert get_request_context() is None
