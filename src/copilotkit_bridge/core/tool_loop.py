"""
Tool-calling loop.

Drives repeated model turns: text is surfaced as it arrives, requested tools
run through the registry, and their results are appended to the history
until the model answers without calling a tool or the iteration cap is hit.
"""

from __future__ import annotations

import secrets
import time

from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass, field

from copilotkit_bridge.core.constants import MAX_TOOL_ITERATIONS, TOOL_CALL_ID_PREFIX
from copilotkit_bridge.core.messages import ensure_system_prompt, last_user_text
from copilotkit_bridge.integrations.openai_chat import ChatModel
from copilotkit_bridge.models.chat_models import (
    AssistantMessage,
    ChatMessage,
    ModelDelta,
    ToolCallRequest,
    ToolMessage,
)
from copilotkit_bridge.models.event_models import (
    LoopEvent,
    LoopFinished,
    LoopOutcome,
    LoopResult,
    TextDelta,
    ToolCallEvent,
    ToolResultEvent,
    TurnEvent,
)
from copilotkit_bridge.tools.registry import ToolRegistry
from copilotkit_bridge.utils.logger import logger


def new_tool_call_id() -> str:
    return f"{TOOL_CALL_ID_PREFIX}{secrets.token_hex(12)}"


@dataclass
class _PendingCall:
    """Tool call assembled from streamed fragments."""

    id: str | None = None
    name: str = ""
    arguments: list[str] = field(default_factory=list)

    def to_request(self) -> ToolCallRequest:
        arguments = "".join(self.arguments)
        return ToolCallRequest(
            id=self.id or new_tool_call_id(),
            name=self.name,
            arguments=arguments if arguments.strip() else "{}",
        )


class _CallBuffer:
    """Collects tool-call fragments keyed by index."""

    def __init__(self) -> None:
        self._calls: dict[int, _PendingCall] = {}

    def add(self, delta: ModelDelta) -> None:
        for fragment in delta.tool_calls:
            pending = self._calls.setdefault(fragment.index, _PendingCall())
            if fragment.id:
                pending.id = fragment.id
            if fragment.name:
                pending.name = fragment.name
            if fragment.arguments:
                pending.arguments.append(fragment.arguments)

    def requests(self) -> list[ToolCallRequest]:
        return [self._calls[index].to_request() for index in sorted(self._calls)]


def _normalize_request(call: ToolCallRequest) -> ToolCallRequest:
    """Fill a missing id and blank arguments on a buffered completion call."""
    if call.id and call.arguments.strip():
        return call
    return ToolCallRequest(
        id=call.id or new_tool_call_id(),
        name=call.name,
        arguments=call.arguments if call.arguments.strip() else "{}",
    )


class ToolCallingLoop:
    """One model/tool orchestration loop per request.

    The loop owns the history it builds; the caller's message list is never
    mutated. The registry is only read.

    Example:
        loop = ToolCallingLoop(model, registry, system_prompt=prompt)
        async for event in loop.stream(history):
            ...
    """

    def __init__(
        self,
        model: ChatModel,
        registry: ToolRegistry,
        system_prompt: str,
        max_iterations: int = MAX_TOOL_ITERATIONS,
    ):
        if max_iterations < 1:
            raise ValueError("max_iterations must be at least 1")
        self.model = model
        self.registry = registry
        self.system_prompt = system_prompt
        self.max_iterations = max_iterations
        self.history: list[ChatMessage] = []

    async def _model_turn(self, tools: list[dict], streaming: bool) -> AsyncIterator[TextDelta | list[ToolCallRequest]]:
        """Run one model turn, yielding text deltas then the turn's tool calls."""
        if streaming:
            buffer = _CallBuffer()
            async for delta in self.model.stream_turn(self.history, tools):
                if delta.text:
                    yield TextDelta(content=delta.text)
                buffer.add(delta)
            yield buffer.requests()
            return

        turn = await self.model.complete_turn(self.history, tools)
        if turn.text:
            yield TextDelta(content=turn.text)
        yield [_normalize_request(call) for call in turn.tool_calls]

    async def _run_tool(self, call: ToolCallRequest) -> ToolResultEvent:
        self.history.append(AssistantMessage(content=None, tool_calls=[call]))
        result = await self.registry.invoke(call.name, call.arguments)
        content = result.to_content()
        self.history.append(ToolMessage(tool_call_id=call.id, content=content))

        logger.log_tool_call(call.name, call.arguments, content, success=result.success)
        return ToolResultEvent(call_id=call.id, name=call.name, content=content, success=result.success)

    async def stream(self, messages: Sequence[ChatMessage], streaming: bool = True) -> AsyncIterator[LoopEvent]:
        """Run the loop, yielding events as they happen and LoopFinished last."""
        started = time.monotonic()
        self.history = ensure_system_prompt(list(messages), self.system_prompt)
        tools = self.registry.schemas()
        events: list[TurnEvent] = []
        last_text = ""
        iterations = 0

        try:
            while True:
                iterations += 1
                turn_text: list[str] = []
                calls: list[ToolCallRequest] = []

                async for item in self._model_turn(tools, streaming):
                    if isinstance(item, TextDelta):
                        turn_text.append(item.content)
                        events.append(item)
                        yield item
                    else:
                        calls = item

                last_text = "".join(turn_text)
                if not calls:
                    result = LoopResult(
                        outcome=LoopOutcome.COMPLETED, text=last_text, iterations=iterations, events=events
                    )
                    break

                for call in calls:
                    call_event = ToolCallEvent(call_id=call.id, name=call.name, arguments=call.arguments)
                    events.append(call_event)
                    yield call_event

                    result_event = await self._run_tool(call)
                    events.append(result_event)
                    yield result_event

                if iterations >= self.max_iterations:
                    logger.warning(
                        f"Tool loop hit iteration cap ({self.max_iterations}) without a final answer",
                        outcome=LoopOutcome.EXHAUSTED.value,
                    )
                    result = LoopResult(
                        outcome=LoopOutcome.EXHAUSTED, text=last_text, iterations=iterations, events=events
                    )
                    break
        except Exception as e:
            logger.error(f"Model request failed: {e}", exc_info=True, outcome=LoopOutcome.FAILED.value)
            result = LoopResult(
                outcome=LoopOutcome.FAILED,
                text=last_text,
                error=str(e),
                iterations=iterations,
                events=events,
            )

        logger.log_loop_result(
            user_input=last_user_text(self.history),
            response=result.text,
            outcome=result.outcome.value,
            tool_names=[event.name for event in result.tool_calls],
            iterations=result.iterations,
            duration_ms=(time.monotonic() - started) * 1000,
        )
        yield LoopFinished(result=result)

    async def run(self, messages: Sequence[ChatMessage]) -> LoopResult:
        """Run the loop to completion with buffered model turns."""
        async for event in self.stream(messages, streaming=False):
            if isinstance(event, LoopFinished):
                return event.result
        raise RuntimeError("Tool loop ended without a result")


__all__ = ["ToolCallingLoop", "new_tool_call_id"]
