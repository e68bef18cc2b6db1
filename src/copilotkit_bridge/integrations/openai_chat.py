"""
OpenAI chat-completions integration.

The tool-calling loop only depends on the ChatModel protocol; OpenAIChatModel
is the production implementation over ``AsyncOpenAI``.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from typing import Any, Protocol

from openai import AsyncOpenAI

from copilotkit_bridge.models.chat_models import (
    ChatMessage,
    ModelDelta,
    ModelTurn,
    ToolCallFragment,
    ToolCallRequest,
)
from copilotkit_bridge.utils.logger import logger


class ChatModel(Protocol):
    """Model capability consumed by the tool-calling loop."""

    @property
    def name(self) -> str: ...

    def stream_turn(
        self, messages: Sequence[ChatMessage], tools: list[dict[str, Any]]
    ) -> AsyncIterator[ModelDelta]: ...

    async def complete_turn(self, messages: Sequence[ChatMessage], tools: list[dict[str, Any]]) -> ModelTurn: ...


def _request_kwargs(messages: Sequence[ChatMessage], tools: list[dict[str, Any]]) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"messages": [message.to_openai() for message in messages]}
    if tools:
        kwargs["tools"] = tools
    return kwargs


def _fragment_from_delta(tool_call: Any) -> ToolCallFragment:
    function = getattr(tool_call, "function", None)
    return ToolCallFragment(
        index=getattr(tool_call, "index", None) or 0,
        id=getattr(tool_call, "id", None),
        name=getattr(function, "name", None) if function else None,
        arguments=getattr(function, "arguments", None) if function else None,
    )


class OpenAIChatModel:
    """ChatModel backed by the OpenAI chat-completions API."""

    def __init__(self, client: AsyncOpenAI, model: str):
        self._client = client
        self._model = model

    @property
    def name(self) -> str:
        return self._model

    async def stream_turn(
        self, messages: Sequence[ChatMessage], tools: list[dict[str, Any]]
    ) -> AsyncIterator[ModelDelta]:
        """Stream one model turn as text and tool-call fragment deltas."""
        stream = await self._client.chat.completions.create(
            model=self._model,
            stream=True,
            **_request_kwargs(messages, tools),
        )
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            if delta is None:
                continue

            fragments = [_fragment_from_delta(tc) for tc in (delta.tool_calls or [])]
            text = delta.content or ""
            if text or fragments:
                yield ModelDelta(text=text, tool_calls=fragments)

    async def complete_turn(self, messages: Sequence[ChatMessage], tools: list[dict[str, Any]]) -> ModelTurn:
        """Run one buffered model turn."""
        completion = await self._client.chat.completions.create(
            model=self._model,
            stream=False,
            **_request_kwargs(messages, tools),
        )
        if not completion.choices:
            logger.warning("Model returned no choices", model=self._model)
            return ModelTurn()

        message = completion.choices[0].message
        calls: list[ToolCallRequest] = []
        for tool_call in message.tool_calls or []:
            function = getattr(tool_call, "function", None)
            if function is None:
                # Custom (non-function) tool calls are not supported
                continue
            calls.append(
                ToolCallRequest(
                    id=tool_call.id,
                    name=function.name,
                    arguments=function.arguments or "{}",
                )
            )
        return ModelTurn(text=message.content or "", tool_calls=calls)


__all__ = ["ChatModel", "OpenAIChatModel"]
