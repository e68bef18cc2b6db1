"""
Inbound message adaptation.

CopilotKit clients send content as plain strings, lists of typed parts
(``[{"type": "text", "text": "..."}]``) or arbitrary objects. Everything is
flattened to text before it reaches the chat history.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from copilotkit_bridge.models.chat_models import (
    AssistantMessage,
    ChatMessage,
    InboundMessage,
    MessageRole,
    SystemMessage,
    UserMessage,
)
from copilotkit_bridge.utils.json_utils import json_compact


def _text_value(value: Any) -> str:
    """Text of a ``text`` field that may not be a string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json_compact(value)


def _part_text(part: Any) -> str:
    if isinstance(part, str):
        return part
    if isinstance(part, dict) and "text" in part:
        return _text_value(part["text"])
    return ""


def normalize_content(content: Any) -> str:
    """Flatten inbound message content to a single string.

    Examples:
        >>> normalize_content([{"type": "text", "text": "Hello "}, {"type": "text", "text": "world"}])
        'Hello world'
        >>> normalize_content({"foo": 1})
        '{"foo":1}'
    """
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(_part_text(part) for part in content)
    if isinstance(content, dict):
        if "text" in content:
            return _text_value(content["text"])
        return json_compact(content)
    return json_compact(content)


def adapt_message(role: Any, content: Any) -> ChatMessage:
    """Convert one inbound role/content pair to a chat history message.

    Only ``system`` and ``assistant`` are honored; every other role (including
    ``tool`` and missing roles) is treated as user input.
    """
    text = normalize_content(content)
    parsed = MessageRole.parse(role)
    if parsed is MessageRole.SYSTEM:
        return SystemMessage(content=text)
    if parsed is MessageRole.ASSISTANT:
        return AssistantMessage(content=text)
    return UserMessage(content=text)


def adapt_messages(inbound: Iterable[InboundMessage]) -> list[ChatMessage]:
    """Adapt a sequence of inbound messages, preserving order."""
    return [adapt_message(message.role, message.content) for message in inbound]


def ensure_system_prompt(history: list[ChatMessage], prompt: str) -> list[ChatMessage]:
    """Return a copy of ``history`` with ``prompt`` prepended unless a system message exists."""
    if any(isinstance(message, SystemMessage) for message in history):
        return list(history)
    return [SystemMessage(content=prompt), *history]


def last_user_text(history: list[ChatMessage]) -> str:
    """Content of the most recent user message, or empty string."""
    for message in reversed(history):
        if isinstance(message, UserMessage):
            return message.content
    return ""


__all__ = [
    "adapt_message",
    "adapt_messages",
    "ensure_system_prompt",
    "last_user_text",
    "normalize_content",
]
