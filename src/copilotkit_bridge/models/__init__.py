"""Pydantic models for chat history, loop events, GraphQL envelopes and errors."""

from __future__ import annotations

from copilotkit_bridge.models.chat_models import (
    AssistantMessage,
    ChatMessage,
    InboundMessage,
    MessageRole,
    ModelDelta,
    ModelTurn,
    SystemMessage,
    ToolCallFragment,
    ToolCallRequest,
    ToolMessage,
    UserMessage,
)
from copilotkit_bridge.models.error_models import ErrorCode, ErrorDetail, ErrorResponse, get_status_code
from copilotkit_bridge.models.event_models import (
    LoopEvent,
    LoopFinished,
    LoopOutcome,
    LoopResult,
    StreamingChunk,
    TextDelta,
    ToolCallEvent,
    ToolResultEvent,
    TurnEvent,
)

__all__ = [
    "AssistantMessage",
    "ChatMessage",
    "ErrorCode",
    "ErrorDetail",
    "ErrorResponse",
    "InboundMessage",
    "LoopEvent",
    "LoopFinished",
    "LoopOutcome",
    "LoopResult",
    "MessageRole",
    "ModelDelta",
    "ModelTurn",
    "StreamingChunk",
    "SystemMessage",
    "TextDelta",
    "ToolCallEvent",
    "ToolCallFragment",
    "ToolCallRequest",
    "ToolMessage",
    "ToolResultEvent",
    "TurnEvent",
    "UserMessage",
    "get_status_code",
]
