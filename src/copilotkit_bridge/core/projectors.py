"""
Response projectors.

Shape tool-calling loop output for the two CopilotKit transports:
- Streaming: ``response-text`` Server-Sent-Events frames ending in ``[DONE]``
- Structured: a single ``generateCopilotResponse`` GraphQL envelope
"""

from __future__ import annotations

import uuid

from collections.abc import AsyncGenerator, AsyncIterator
from typing import Any

from copilotkit_bridge.core.constants import (
    MODEL_FAILURE_PREFIX,
    SSE_DONE_MARKER,
    STREAM_EVENT_ERROR,
    STREAM_EVENT_RESPONSE_TEXT,
    STREAM_FAILURE_STATUS_CODE,
)
from copilotkit_bridge.models.copilot_models import (
    ActionExecutionMessageOutput,
    CopilotResponse,
    OutputMessage,
    ResultMessageOutput,
    TextMessageOutput,
)
from copilotkit_bridge.models.event_models import (
    LoopEvent,
    LoopFinished,
    LoopResult,
    StreamingChunk,
    TextDelta,
    ToolCallEvent,
    ToolResultEvent,
)
from copilotkit_bridge.utils.json_utils import json_compact, parse_json_object
from copilotkit_bridge.utils.logger import logger


def failure_text(error: str | None) -> str:
    """User-visible description of a failed model request."""
    return f"{MODEL_FAILURE_PREFIX}{error or 'unknown error'}"


# ============================================================================
# Streaming projection
# ============================================================================


def text_chunk(content: str) -> StreamingChunk:
    return StreamingChunk(payload=json_compact({"type": STREAM_EVENT_RESPONSE_TEXT, "content": content}))


def error_chunk(error: str | None) -> StreamingChunk:
    message = failure_text(error)
    return StreamingChunk(
        payload=json_compact({"type": STREAM_EVENT_ERROR, "content": message}),
        is_error=True,
        status_code=STREAM_FAILURE_STATUS_CODE,
        error_message=message,
    )


async def project_stream(events: AsyncIterator[LoopEvent]) -> AsyncGenerator[StreamingChunk, None]:
    """Project loop events onto streaming chunks.

    Only assistant text is streamed. A successful run ends with the terminal
    chunk; a failed run ends with one error chunk instead.
    """
    async for event in events:
        if isinstance(event, TextDelta):
            yield text_chunk(event.content)
        elif isinstance(event, LoopFinished):
            if event.result.failed:
                yield error_chunk(event.result.error)
            else:
                yield StreamingChunk()
            return


def format_sse(chunk: StreamingChunk) -> str:
    """Render one chunk as a Server-Sent-Events frame."""
    if chunk.is_terminal:
        return f"data: {SSE_DONE_MARKER}\n\n"
    return f"data: {chunk.payload}\n\n"


# ============================================================================
# Structured projection
# ============================================================================


def _parse_arguments(call: ToolCallEvent) -> dict[str, Any]:
    parsed = parse_json_object(call.arguments)
    if parsed is None:
        if call.arguments.strip() not in ("", "{}"):
            logger.warning(f"Tool call arguments for {call.name} are not a JSON object; reporting empty arguments")
        return {}
    return parsed


def build_generate_response(result: LoopResult, thread_id: str | None = None) -> dict[str, Any]:
    """Build the ``generateCopilotResponse`` envelope for a finished loop run.

    Records appear in event order: one action execution per tool call, one
    result per tool result, then exactly one final text record.
    """
    messages: list[OutputMessage] = []
    for event in result.events:
        if isinstance(event, ToolCallEvent):
            messages.append(
                ActionExecutionMessageOutput(
                    name=event.name,
                    arguments=_parse_arguments(event),
                )
            )
        elif isinstance(event, ToolResultEvent):
            messages.append(
                ResultMessageOutput(
                    action_execution_id=event.call_id,
                    action_name=event.name,
                    result=event.content,
                )
            )

    final_text = failure_text(result.error) if result.failed else result.text
    messages.append(TextMessageOutput(content=[final_text]))

    response = CopilotResponse(thread_id=thread_id or str(uuid.uuid4()), messages=messages)
    return response.to_envelope()


def build_error_response(message: str, thread_id: str | None = None) -> dict[str, Any]:
    """Envelope carrying only a model failure description."""
    response = CopilotResponse(
        thread_id=thread_id or str(uuid.uuid4()),
        messages=[TextMessageOutput(content=[failure_text(message)])],
    )
    return response.to_envelope()


__all__ = [
    "build_error_response",
    "build_generate_response",
    "error_chunk",
    "failure_text",
    "format_sse",
    "project_stream",
    "text_chunk",
]
