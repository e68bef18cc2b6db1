"""
CopilotKit request handling.

Routes inbound payloads to the GraphQL answers CopilotKit's runtime client
expects, or to the streaming chat path, running the tool-calling loop for
each request with its own isolated history.
"""

from __future__ import annotations

import uuid

from collections.abc import AsyncGenerator
from typing import Any

from copilotkit_bridge.api.middleware.request_context import update_request_context
from copilotkit_bridge.core.constants import (
    ERROR_MISSING_GENERATE_MESSAGES,
    GRAPHQL_AVAILABLE_AGENTS,
    GRAPHQL_GENERATE_RESPONSE,
    GRAPHQL_LOAD_AGENT_STATE,
    EntryPoint,
    Settings,
)
from copilotkit_bridge.core.exceptions import MalformedPayloadError
from copilotkit_bridge.core.messages import adapt_messages
from copilotkit_bridge.core.projectors import build_error_response, build_generate_response, project_stream
from copilotkit_bridge.core.tool_loop import ToolCallingLoop
from copilotkit_bridge.integrations.openai_chat import ChatModel
from copilotkit_bridge.models.chat_models import InboundMessage, MessageRole
from copilotkit_bridge.models.copilot_models import AgentState, available_agents_envelope
from copilotkit_bridge.models.event_models import StreamingChunk
from copilotkit_bridge.tools.registry import ToolRegistry
from copilotkit_bridge.utils.logger import logger


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _variables_data(payload: dict[str, Any]) -> dict[str, Any]:
    return _as_dict(_as_dict(payload.get("variables")).get("data"))


def _role(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value
    return MessageRole.USER.value


def _thread_id(data: dict[str, Any]) -> str:
    thread_id = data.get("threadId")
    if isinstance(thread_id, str) and thread_id.strip():
        return thread_id
    return str(uuid.uuid4())


def extract_messages(payload: dict[str, Any]) -> list[InboundMessage]:
    """Role/content pairs from a plain chat payload's ``messages`` list.

    Non-object items are skipped; a missing or blank role means ``user``.
    """
    items = payload.get("messages")
    if not isinstance(items, list):
        return []
    return [
        InboundMessage(role=_role(item.get("role")), content=item.get("content"))
        for item in items
        if isinstance(item, dict)
    ]


def extract_generate_messages(data: dict[str, Any]) -> list[InboundMessage]:
    """Role/content pairs from ``generateCopilotResponse`` variables.

    Reads ``textMessage`` when it carries content, otherwise role/content on
    the item. Items with no content anywhere are skipped.
    """
    items = data.get("messages")
    if not isinstance(items, list):
        return []

    messages: list[InboundMessage] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        text_message = item.get("textMessage")
        if isinstance(text_message, dict) and "content" in text_message:
            source = text_message
        elif "content" in item:
            source = item
        else:
            # Action/result records carry no chat text
            continue
        messages.append(InboundMessage(role=_role(source.get("role")), content=source.get("content")))
    return messages


class CopilotService:
    """Serves the /copilotkit endpoint for one process.

    Holds only read-only collaborators; every request builds its own loop.
    """

    def __init__(self, model: ChatModel, registry: ToolRegistry, settings: Settings):
        self.model = model
        self.registry = registry
        self.settings = settings

    def _create_loop(self, entry_point: EntryPoint) -> ToolCallingLoop:
        return ToolCallingLoop(
            model=self.model,
            registry=self.registry,
            system_prompt=self.settings.system_prompt_for(entry_point),
            max_iterations=self.settings.max_tool_iterations,
        )

    async def handle_graphql(self, payload: dict[str, Any]) -> dict[str, Any] | None:
        """Answer a CopilotKit GraphQL operation, or None when the payload is not one."""
        query = payload.get("query")
        if not isinstance(query, str):
            return None

        normalized = query.lower()
        if GRAPHQL_AVAILABLE_AGENTS.lower() in normalized:
            return available_agents_envelope()

        data = _variables_data(payload)
        if GRAPHQL_LOAD_AGENT_STATE.lower() in normalized:
            return AgentState(thread_id=_thread_id(data)).to_envelope()

        if GRAPHQL_GENERATE_RESPONSE.lower() in normalized:
            messages = extract_generate_messages(data)
            if not messages:
                raise MalformedPayloadError(ERROR_MISSING_GENERATE_MESSAGES, field="variables.data.messages")
            return await self.generate_response(messages, _thread_id(data))

        logger.debug("Unrecognized GraphQL operation; falling back to chat payload handling")
        return None

    async def generate_response(self, messages: list[InboundMessage], thread_id: str) -> dict[str, Any]:
        """Run the loop with buffered model turns and build the response envelope."""
        update_request_context(thread_id=thread_id)
        loop = self._create_loop(EntryPoint.GENERATE)
        result = await loop.run(adapt_messages(messages))

        if result.failed and not result.events:
            return build_error_response(result.error or "", thread_id)
        return build_generate_response(result, thread_id)

    def extract_messages(self, payload: dict[str, Any]) -> list[InboundMessage]:
        return extract_messages(payload)

    def stream_chat(self, messages: list[InboundMessage]) -> AsyncGenerator[StreamingChunk, None]:
        """Stream the loop's answer as chunks (see ``project_stream``)."""
        loop = self._create_loop(EntryPoint.CHAT)
        return project_stream(loop.stream(adapt_messages(messages)))


__all__ = ["CopilotService", "extract_generate_messages", "extract_messages"]
