"""
CopilotKit GraphQL response models.

Mirror the ``generateCopilotResponse`` mutation result consumed by the
CopilotKit runtime client. Serialize with ``to_dict()`` so ``__typename``
and camelCase aliases are emitted.
"""

from __future__ import annotations

import uuid

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from copilotkit_bridge.core.constants import ACTION_SCOPE_SERVER


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> str:
    return datetime.now(UTC).isoformat()


class _GraphQLModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class MessageStatus(_GraphQLModel):
    typename: Literal["SuccessMessageStatus"] = Field(default="SuccessMessageStatus", alias="__typename")
    code: Literal["Success"] = "Success"


class ResponseStatus(_GraphQLModel):
    typename: Literal["SuccessResponseStatus"] = Field(default="SuccessResponseStatus", alias="__typename")
    code: Literal["Success"] = "Success"


class _OutputMessage(_GraphQLModel):
    """Fields shared by every output record (flat, non-threaded history)."""

    id: str = Field(default_factory=_new_id)
    created_at: str = Field(default_factory=_now, alias="createdAt")
    status: MessageStatus = Field(default_factory=MessageStatus)
    parent_message_id: str | None = Field(default=None, alias="parentMessageId")


class TextMessageOutput(_OutputMessage):
    typename: Literal["TextMessageOutput"] = Field(default="TextMessageOutput", alias="__typename")
    role: Literal["assistant"] = "assistant"
    content: list[str]


class ActionExecutionMessageOutput(_OutputMessage):
    typename: Literal["ActionExecutionMessageOutput"] = Field(
        default="ActionExecutionMessageOutput", alias="__typename"
    )
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    scope: str = ACTION_SCOPE_SERVER


class ResultMessageOutput(_OutputMessage):
    typename: Literal["ResultMessageOutput"] = Field(default="ResultMessageOutput", alias="__typename")
    action_execution_id: str = Field(alias="actionExecutionId")
    action_name: str = Field(alias="actionName")
    result: str


OutputMessage = TextMessageOutput | ActionExecutionMessageOutput | ResultMessageOutput


class CopilotResponse(_GraphQLModel):
    """Payload of ``data.generateCopilotResponse``."""

    typename: Literal["CopilotResponse"] = Field(default="CopilotResponse", alias="__typename")
    thread_id: str = Field(default_factory=_new_id, alias="threadId")
    run_id: str | None = Field(default=None, alias="runId")
    extensions: dict[str, Any] | None = None
    status: ResponseStatus = Field(default_factory=ResponseStatus)
    messages: list[OutputMessage] = Field(default_factory=list)
    meta_events: list[dict[str, Any]] = Field(default_factory=list, alias="metaEvents")

    def to_envelope(self) -> dict[str, Any]:
        return {"data": {"generateCopilotResponse": self.to_dict()}}


class AgentState(_GraphQLModel):
    """Payload of ``data.loadAgentState`` (nothing is ever persisted)."""

    thread_id: str = Field(alias="threadId")
    thread_exists: bool = Field(default=False, alias="threadExists")
    state: str = ""
    messages: str = ""

    def to_envelope(self) -> dict[str, Any]:
        return {"data": {"loadAgentState": self.to_dict()}}


def available_agents_envelope() -> dict[str, Any]:
    return {"data": {"availableAgents": {"agents": []}}}


__all__ = [
    "ActionExecutionMessageOutput",
    "AgentState",
    "CopilotResponse",
    "MessageStatus",
    "OutputMessage",
    "ResponseStatus",
    "ResultMessageOutput",
    "TextMessageOutput",
    "available_agents_envelope",
]
