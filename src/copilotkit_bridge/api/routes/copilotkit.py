"""
CopilotKit runtime endpoint.

``POST /copilotkit`` answers CopilotKit GraphQL operations as JSON and plain
chat payloads as a Server-Sent-Events stream of ``response-text`` frames.
"""

from __future__ import annotations

import json

from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, Response, StreamingResponse

from copilotkit_bridge.api.dependencies import Copilot
from copilotkit_bridge.core.constants import ERROR_MISSING_MESSAGES
from copilotkit_bridge.core.exceptions import MalformedPayloadError
from copilotkit_bridge.core.projectors import format_sse
from copilotkit_bridge.models.event_models import StreamingChunk
from copilotkit_bridge.utils.logger import logger

router = APIRouter()

SSE_MEDIA_TYPE = "text/event-stream"
SSE_HEADERS = {
    "Cache-Control": "no-cache",
    # Disable proxy buffering so tokens reach the client as they arrive
    "X-Accel-Buffering": "no",
}


async def _read_payload(request: Request) -> dict[str, Any]:
    try:
        payload = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedPayloadError("Request body must be a JSON object.", field="body") from e
    if not isinstance(payload, dict):
        raise MalformedPayloadError("Request body must be a JSON object.", field="body")
    return payload


async def _sse_frames(first: StreamingChunk, rest: AsyncIterator[StreamingChunk]) -> AsyncIterator[str]:
    yield format_sse(first)
    async for chunk in rest:
        if chunk.is_error:
            logger.warning(f"Stream ended with model failure: {chunk.error_message}")
        yield format_sse(chunk)


@router.post(
    "/copilotkit",
    summary="CopilotKit runtime",
    description="GraphQL operations return JSON; chat payloads stream Server-Sent Events.",
    tags=["CopilotKit"],
)
async def copilotkit(request: Request, service: Copilot) -> Response:
    """Serve one CopilotKit request."""
    payload = await _read_payload(request)

    answer = await service.handle_graphql(payload)
    if answer is not None:
        return JSONResponse(content=answer)

    messages = service.extract_messages(payload)
    if not messages:
        raise MalformedPayloadError(ERROR_MISSING_MESSAGES, field="messages")

    chunks = service.stream_chat(messages)
    first = await anext(chunks, StreamingChunk())

    # A failure before any frame was sent is reported through the status code
    if first.is_error:
        await chunks.aclose()
        logger.warning(f"Model request failed before streaming: {first.error_message}")
        return Response(
            content=format_sse(first),
            status_code=first.status_code or 500,
            media_type=SSE_MEDIA_TYPE,
            headers=SSE_HEADERS,
        )

    return StreamingResponse(_sse_frames(first, chunks), media_type=SSE_MEDIA_TYPE, headers=SSE_HEADERS)
