"""
Per-request context for the CopilotKit bridge.

Each request gets a ``RequestContext`` stored in a ContextVar, so log lines
from the tool-calling loop and the exception handlers can name the request
(and, on the GraphQL path, the CopilotKit thread) without threading it
through every call.
"""

from __future__ import annotations

import secrets
import time

from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_ID_PREFIX = "req_"
REQUEST_ID_HEADER = "X-Request-ID"
RESPONSE_TIME_HEADER = "X-Response-Time"
FORWARDED_FOR_HEADER = "X-Forwarded-For"

_current: ContextVar[RequestContext | None] = ContextVar("copilotkit_request", default=None)


def generate_request_id() -> str:
    """``req_`` followed by 16 hex characters."""
    return f"{REQUEST_ID_PREFIX}{secrets.token_hex(8)}"


def _client_ip(request: Request) -> str | None:
    forwarded = request.headers.get(FORWARDED_FOR_HEADER)
    if forwarded:
        # First hop is the original client
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


@dataclass
class RequestContext:
    """What the bridge knows about the request being served."""

    request_id: str
    path: str = ""
    method: str = ""
    client_ip: str | None = None
    thread_id: str | None = None
    started: float = field(default_factory=time.monotonic)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_request(cls, request: Request) -> RequestContext:
        return cls(
            request_id=request.headers.get(REQUEST_ID_HEADER) or generate_request_id(),
            path=request.url.path,
            method=request.method,
            client_ip=_client_ip(request),
        )

    @property
    def elapsed_ms(self) -> float:
        return (time.monotonic() - self.started) * 1000

    def to_log_context(self) -> dict[str, Any]:
        """Fields merged into every log record emitted during the request."""
        ctx: dict[str, Any] = {
            "request_id": self.request_id,
            "path": self.path,
            "method": self.method,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }
        optional = {"client_ip": self.client_ip, "thread_id": self.thread_id}
        ctx.update({key: value for key, value in optional.items() if value})
        ctx.update(self.extra)
        return ctx


def get_request_context() -> RequestContext | None:
    """Context of the request being served, or None outside a request."""
    return _current.get()


def get_request_id() -> str | None:
    ctx = _current.get()
    return ctx.request_id if ctx else None


def set_request_context(context: RequestContext) -> Token[RequestContext | None]:
    return _current.set(context)


def clear_request_context(token: Token[RequestContext | None] | None = None) -> None:
    """Drop the current context, restoring the previous one when ``token`` is given."""
    if token is not None:
        _current.reset(token)
    else:
        _current.set(None)


def update_request_context(**fields: Any) -> None:
    """Attach fields to the current context; unknown names go to ``extra``.

    Does nothing outside a request.
    """
    ctx = _current.get()
    if ctx is None:
        return
    for name, value in fields.items():
        if name in ctx.__dataclass_fields__ and name != "extra":
            setattr(ctx, name, value)
        else:
            ctx.extra[name] = value


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Opens a RequestContext per request and echoes its id and timing headers."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        context = RequestContext.from_request(request)
        token = set_request_context(context)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = context.request_id
            response.headers[RESPONSE_TIME_HEADER] = f"{context.elapsed_ms:.2f}ms"
            return response
        finally:
            clear_request_context(token)


__all__ = [
    "REQUEST_ID_HEADER",
    "REQUEST_ID_PREFIX",
    "RequestContext",
    "RequestContextMiddleware",
    "clear_request_context",
    "generate_request_id",
    "get_request_context",
    "get_request_id",
    "set_request_context",
    "update_request_context",
]
