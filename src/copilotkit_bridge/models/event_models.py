"""
Tool-calling loop event models.
Describes what one loop run produced and the chunks the streaming path emits.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, Field


class LoopOutcome(str, Enum):
    """Terminal state of a tool-calling loop run."""

    COMPLETED = "completed"
    EXHAUSTED = "exhausted"
    FAILED = "failed"


class TextDelta(BaseModel):
    """Incremental assistant text."""

    type: Literal["text_delta"] = "text_delta"
    content: str


class ToolCallEvent(BaseModel):
    """Tool call issued by the model and about to be executed."""

    type: Literal["tool_call"] = "tool_call"
    call_id: str
    name: str
    arguments: str


class ToolResultEvent(BaseModel):
    """Result (or error payload) of an executed tool call."""

    type: Literal["tool_result"] = "tool_result"
    call_id: str
    name: str
    content: str
    success: bool = True


TurnEvent = TextDelta | ToolCallEvent | ToolResultEvent


class LoopResult(BaseModel):
    """Terminal state of one loop run plus every intermediate event."""

    outcome: LoopOutcome
    text: str = ""
    error: str | None = None
    iterations: int = 0
    events: list[TurnEvent] = Field(default_factory=list)

    @property
    def tool_calls(self) -> list[ToolCallEvent]:
        return [event for event in self.events if isinstance(event, ToolCallEvent)]

    @property
    def failed(self) -> bool:
        return self.outcome is LoopOutcome.FAILED


class LoopFinished(BaseModel):
    """Last event of every loop run."""

    type: Literal["finished"] = "finished"
    result: LoopResult


LoopEvent = TextDelta | ToolCallEvent | ToolResultEvent | LoopFinished


class StreamingChunk(BaseModel):
    """Unit written to the SSE transport.

    ``payload`` is JSON text; ``None`` marks the end of a successful stream.
    """

    payload: str | None = None
    is_error: bool = False
    status_code: int | None = None
    error_message: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.payload is None


__all__ = [
    "LoopEvent",
    "LoopFinished",
    "LoopOutcome",
    "LoopResult",
    "StreamingChunk",
    "TextDelta",
    "ToolCallEvent",
    "ToolResultEvent",
    "TurnEvent",
]
