"""Tests for the tool-calling loop.

Uses a scripted ChatModel so every model turn is deterministic.
"""

from __future__ import annotations

import asyncio
import json

from typing import Any
from unittest.mock import AsyncMock

import pytest

from fakes import WEATHER_RESULT, ScriptedChatModel, text_turn, tool_turn

from copilotkit_bridge.core.tool_loop import ToolCallingLoop
from copilotkit_bridge.models.chat_models import (
    AssistantMessage,
    ModelDelta,
    SystemMessage,
    ToolCallFragment,
    ToolMessage,
    UserMessage,
)
from copilotkit_bridge.models.event_models import (
    LoopFinished,
    LoopOutcome,
    TextDelta,
    ToolCallEvent,
    ToolResultEvent,
)
from copilotkit_bridge.tools.registry import Tool, ToolRegistry
from copilotkit_bridge.tools.weather import WEATHER_PARAMETERS

PROMPT = "Always call tools instead of describing them."


def _history() -> list[Any]:
    return [UserMessage(content="What's the weather in Tokyo?")]


async def _collect(loop: ToolCallingLoop, streaming: bool = True) -> list[Any]:
    return [event async for event in loop.stream(_history(), streaming=streaming)]


class TestCompletion:
    """Turns without tool calls."""

    @pytest.mark.asyncio
    async def test_plain_answer_completes(self, registry: Any) -> None:
        model = ScriptedChatModel([text_turn("Hello there")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        events = await _collect(loop)

        deltas = [e.content for e in events if isinstance(e, TextDelta)]
        assert "".join(deltas) == "Hello there"
        assert isinstance(events[-1], LoopFinished)
        result = events[-1].result
        assert result.outcome is LoopOutcome.COMPLETED
        assert result.text == "Hello there"
        assert result.iterations == 1

    @pytest.mark.asyncio
    async def test_empty_answer_completes_with_empty_text(self, registry: Any) -> None:
        model = ScriptedChatModel([text_turn("")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        result = await loop.run(_history())

        assert result.outcome is LoopOutcome.COMPLETED
        assert result.text == ""
        assert result.events == []

    @pytest.mark.asyncio
    async def test_system_prompt_injected_once_at_front(self, registry: Any) -> None:
        model = ScriptedChatModel([text_turn("ok")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        await loop.run(_history())

        sent = model.requests[0]
        assert isinstance(sent[0], SystemMessage)
        assert sent[0].content == PROMPT
        assert sum(isinstance(m, SystemMessage) for m in sent) == 1

    @pytest.mark.asyncio
    async def test_existing_system_prompt_kept(self, registry: Any) -> None:
        model = ScriptedChatModel([text_turn("ok")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        await loop.run([UserMessage(content="hi"), SystemMessage(content="Custom")])

        systems = [m.content for m in model.requests[0] if isinstance(m, SystemMessage)]
        assert systems == ["Custom"]

    @pytest.mark.asyncio
    async def test_caller_history_not_mutated(self, registry: Any) -> None:
        model = ScriptedChatModel([tool_turn(("get_weather", '{"location":"Tokyo"}', "call_1")), text_turn("done")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)
        history = _history()

        await loop.run(history)

        assert len(history) == 1

    @pytest.mark.asyncio
    async def test_tool_schemas_attached(self, registry: Any) -> None:
        model = ScriptedChatModel([text_turn("ok")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        await loop.run(_history())

        assert [tool["function"]["name"] for tool in model.tools[0]] == ["get_weather"]

    def test_rejects_non_positive_cap(self, registry: Any) -> None:
        with pytest.raises(ValueError):
            ToolCallingLoop(ScriptedChatModel([]), registry, system_prompt=PROMPT, max_iterations=0)


class TestToolCalls:
    """Turns that request tools."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("streaming", [True, False])
    async def test_tool_round_trip(self, registry: Any, weather_executor: AsyncMock, streaming: bool) -> None:
        model = ScriptedChatModel(
            [tool_turn(("get_weather", '{"location":"Tokyo"}', "call_1")), text_turn("It is sunny in Tokyo.")]
        )
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        events = await _collect(loop, streaming=streaming)

        weather_executor.assert_awaited_once_with('{"location":"Tokyo"}')
        calls = [e for e in events if isinstance(e, ToolCallEvent)]
        results = [e for e in events if isinstance(e, ToolResultEvent)]
        assert [(c.call_id, c.name, c.arguments) for c in calls] == [("call_1", "get_weather", '{"location":"Tokyo"}')]
        assert results[0].call_id == "call_1"
        assert results[0].content == WEATHER_RESULT
        assert results[0].success is True

        result = events[-1].result
        assert result.outcome is LoopOutcome.COMPLETED
        assert result.text == "It is sunny in Tokyo."
        assert result.iterations == 2

        # Second request carries the assistant call followed by its tool result
        second = model.requests[1]
        assistant, tool = second[-2], second[-1]
        assert isinstance(assistant, AssistantMessage)
        assert [c.id for c in assistant.tool_calls] == ["call_1"]
        assert isinstance(tool, ToolMessage)
        assert tool.tool_call_id == "call_1"

    @pytest.mark.asyncio
    async def test_every_tool_call_is_followed_by_its_result(self, registry: Any) -> None:
        model = ScriptedChatModel(
            [
                tool_turn(
                    ("get_weather", '{"location":"Tokyo"}', "call_a"),
                    ("get_weather", '{"location":"Paris"}', "call_b"),
                ),
                tool_turn(("get_weather", '{"location":"Rome"}', "call_c")),
                text_turn("done"),
            ]
        )
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        await loop.run(_history())

        for request in model.requests:
            for position, message in enumerate(request):
                if isinstance(message, AssistantMessage) and message.tool_calls:
                    assert len(message.tool_calls) == 1
                    follower = request[position + 1]
                    assert isinstance(follower, ToolMessage)
                    assert follower.tool_call_id == message.tool_calls[0].id

    @pytest.mark.asyncio
    async def test_calls_run_sequentially_in_index_order(self, registry: Any, weather_executor: AsyncMock) -> None:
        model = ScriptedChatModel(
            [
                tool_turn(
                    ("get_weather", '{"location":"A"}', "call_a"),
                    ("get_weather", '{"location":"B"}', "call_b"),
                ),
                text_turn("done"),
            ]
        )
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        await loop.run(_history())

        assert [c.args[0] for c in weather_executor.await_args_list] == ['{"location":"A"}', '{"location":"B"}']

    @pytest.mark.asyncio
    async def test_unknown_tool_yields_error_result_and_continues(
        self, registry: Any, weather_executor: AsyncMock
    ) -> None:
        model = ScriptedChatModel([tool_turn(("launch_rocket", "{}", "call_x")), text_turn("Sorry, I can't.")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        result = await loop.run(_history())

        weather_executor.assert_not_awaited()
        tool_result = next(e for e in result.events if isinstance(e, ToolResultEvent))
        assert tool_result.success is False
        assert json.loads(tool_result.content) == {"error": "Tool launch_rocket not found."}
        assert result.outcome is LoopOutcome.COMPLETED
        assert model.call_count == 2

    @pytest.mark.asyncio
    async def test_failing_tool_yields_error_result(self, registry: Any, weather_executor: AsyncMock) -> None:
        weather_executor.side_effect = RuntimeError("upstream down")
        model = ScriptedChatModel([tool_turn(("get_weather", '{"location":"Tokyo"}', "call_1")), text_turn("Hmm.")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        result = await loop.run(_history())

        tool_message = model.requests[1][-1]
        assert isinstance(tool_message, ToolMessage)
        assert json.loads(tool_message.content) == {"error": "Tool get_weather failed: upstream down"}
        assert result.outcome is LoopOutcome.COMPLETED

    @pytest.mark.asyncio
    async def test_missing_call_id_is_synthesized(self, registry: Any) -> None:
        model = ScriptedChatModel([tool_turn(("get_weather", '{"location":"Tokyo"}', None)), text_turn("ok")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        result = await loop.run(_history())

        call = result.tool_calls[0]
        assert call.call_id.startswith("call_")
        assert model.requests[1][-1].tool_call_id == call.call_id

    @pytest.mark.asyncio
    async def test_empty_arguments_become_empty_object(self, registry: Any, weather_executor: AsyncMock) -> None:
        model = ScriptedChatModel([tool_turn(("get_weather", "", "call_1")), text_turn("ok")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        await loop.run(_history())

        weather_executor.assert_awaited_once_with("{}")


class TestStreamingFragments:
    """Fragment buffering on the streaming path."""

    @pytest.mark.asyncio
    async def test_fragments_are_buffered_by_index(self, registry: Any, weather_executor: AsyncMock) -> None:
        class FragmentModel(ScriptedChatModel):
            async def stream_turn(self, messages, tools):  # type: ignore[no-untyped-def]
                self._next(messages, tools)
                if self.call_count == 1:
                    yield ModelDelta(tool_calls=[ToolCallFragment(index=1, id="call_b", name="get_weather")])
                    yield ModelDelta(tool_calls=[ToolCallFragment(index=0, id="call_a", name="get_weather")])
                    yield ModelDelta(tool_calls=[ToolCallFragment(index=1, arguments='{"location"')])
                    yield ModelDelta(tool_calls=[ToolCallFragment(index=0, arguments='{"location":"A"}')])
                    yield ModelDelta(tool_calls=[ToolCallFragment(index=1, arguments=':"B"}')])
                else:
                    yield ModelDelta(text="done")

        model = FragmentModel([text_turn(""), text_turn("")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        events = await _collect(loop)
        result = events[-1].result

        assert [c.call_id for c in result.tool_calls] == ["call_a", "call_b"]
        assert [c.args[0] for c in weather_executor.await_args_list] == ['{"location":"A"}', '{"location":"B"}']
        assert result.text == "done"


class TestTermination:
    """Iteration cap and model failures."""

    @pytest.mark.asyncio
    async def test_cap_produces_exhausted(self, registry: Any, weather_executor: AsyncMock) -> None:
        turns = [tool_turn(("get_weather", '{"location":"Tokyo"}', f"call_{n}"), text=f"try {n}") for n in range(20)]
        model = ScriptedChatModel(turns)
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT, max_iterations=10)

        result = await loop.run(_history())

        assert result.outcome is LoopOutcome.EXHAUSTED
        assert result.iterations == 10
        assert model.call_count == 10
        assert weather_executor.await_count == 10
        assert result.text == "try 9"

    @pytest.mark.asyncio
    async def test_model_failure_on_first_call(self, registry: Any, weather_executor: AsyncMock) -> None:
        model = ScriptedChatModel([RuntimeError("rate limited")])
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        events = await _collect(loop)

        assert len(events) == 1
        result = events[0].result
        assert result.outcome is LoopOutcome.FAILED
        assert result.error == "rate limited"
        assert model.call_count == 1
        weather_executor.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_model_failure_after_tools_keeps_events(self, registry: Any) -> None:
        model = ScriptedChatModel(
            [tool_turn(("get_weather", '{"location":"Tokyo"}', "call_1")), RuntimeError("connection reset")]
        )
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)

        result = await loop.run(_history())

        assert result.failed
        assert result.error == "connection reset"
        assert len(result.tool_calls) == 1
        assert model.call_count == 2

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, registry: Any) -> None:
        class CancelledModel(ScriptedChatModel):
            async def complete_turn(self, messages, tools):  # type: ignore[no-untyped-def]
                raise asyncio.CancelledError()

        loop = ToolCallingLoop(CancelledModel([]), registry, system_prompt=PROMPT)

        with pytest.raises(asyncio.CancelledError):
            await loop.run(_history())

    @pytest.mark.asyncio
    async def test_cancelling_consumer_during_tool_stops_loop(self) -> None:
        tool_started = asyncio.Event()

        async def slow_weather(arguments: str) -> str:
            tool_started.set()
            await asyncio.Event().wait()
            return WEATHER_RESULT

        registry = ToolRegistry()
        registry.register(
            Tool(name="get_weather", description="Slow weather.", parameters=WEATHER_PARAMETERS, executor=slow_weather)
        )
        registry.freeze()
        model = ScriptedChatModel(
            [tool_turn(("get_weather", '{"location":"Tokyo"}', "call_1")), text_turn("unreachable")]
        )
        loop = ToolCallingLoop(model, registry, system_prompt=PROMPT)
        received: list[Any] = []

        async def consume() -> None:
            async for event in loop.stream(_history()):
                received.append(event)

        task = asyncio.create_task(consume())
        await asyncio.wait_for(tool_started.wait(), timeout=1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert [type(event) for event in received] == [ToolCallEvent]
        assert model.call_count == 1
