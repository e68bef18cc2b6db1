"""
Chat history models for the tool-calling loop.

ChatMessage is a tagged union on ``role``; every member converts to the
OpenAI chat-completions message parameter shape with ``to_openai()``.
The model-capability boundary types (ModelDelta, ModelTurn) live here too.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class MessageRole(str, Enum):
    """Roles understood by the chat history."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"

    @classmethod
    def parse(cls, value: Any) -> MessageRole:
        """Map an inbound role string to a role, defaulting to USER."""
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.USER
        return cls.USER


class ToolCallRequest(BaseModel):
    """A model-issued request to execute one tool."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    arguments: str = "{}"

    def to_openai(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


class SystemMessage(BaseModel):
    role: Literal["system"] = "system"
    content: str

    def to_openai(self) -> dict[str, Any]:
        return {"role": "system", "content": self.content}


class UserMessage(BaseModel):
    role: Literal["user"] = "user"
    content: str

    def to_openai(self) -> dict[str, Any]:
        return {"role": "user", "content": self.content}


class AssistantMessage(BaseModel):
    """Assistant turn carrying text, tool-call requests, or both."""

    role: Literal["assistant"] = "assistant"
    content: str | None = None
    tool_calls: list[ToolCallRequest] = Field(default_factory=list)

    def to_openai(self) -> dict[str, Any]:
        message: dict[str, Any] = {"role": "assistant", "content": self.content}
        if self.tool_calls:
            message["tool_calls"] = [call.to_openai() for call in self.tool_calls]
        return message


class ToolMessage(BaseModel):
    """Result of one tool call, paired with the assistant request by id."""

    role: Literal["tool"] = "tool"
    tool_call_id: str
    content: str

    def to_openai(self) -> dict[str, Any]:
        return {"role": "tool", "tool_call_id": self.tool_call_id, "content": self.content}


ChatMessage = Annotated[
    SystemMessage | UserMessage | AssistantMessage | ToolMessage,
    Field(discriminator="role"),
]


class InboundMessage(BaseModel):
    """Raw role/content pair extracted from a request payload.

    ``content`` is left untyped: it may be a string, a list of parts or an
    object, and is flattened by the content normalizer.
    """

    role: str = MessageRole.USER.value
    content: Any = None


# ============================================================================
# Model capability boundary
# ============================================================================


class ToolCallFragment(BaseModel):
    """Partial tool call streamed by the model, keyed by ``index``."""

    index: int = 0
    id: str | None = None
    name: str | None = None
    arguments: str | None = None


class ModelDelta(BaseModel):
    """One streamed update from the model."""

    text: str = ""
    tool_calls: list[ToolCallFragment] = Field(default_factory=list)


class ModelTurn(BaseModel):
    """One buffered (non-streamed) model completion."""

    text: str = ""
    tool_calls: list[ToolCallRequest] = Field(default_factory=list)


__all__ = [
    "AssistantMessage",
    "ChatMessage",
    "InboundMessage",
    "MessageRole",
    "ModelDelta",
    "ModelTurn",
    "SystemMessage",
    "ToolCallFragment",
    "ToolCallRequest",
    "ToolMessage",
    "UserMessage",
]
