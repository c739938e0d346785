"""
Tests for the orchestrator loop.
"""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from agentic_budget.config.loader import BudgetOptions
from agentic_budget.core.budget import create_budget_tracker
from agentic_budget.core.token_counter import TokenUsage
from agentic_budget.exceptions import InsufficientBudgetError, ProviderError
from agentic_budget.orchestrator import create_ai_with_tools
from agentic_budget.sdk.models import ProviderResponse, ToolCallRequest
from agentic_budget.tools.base import ExecutableTool, FunctionDefinition, Tool, create_tool_collection
from agentic_budget.tools.factory import MODEL_CLASSES, ToolConfig, create_executable_tool


def make_model(content="Done", tool_calls=None, usage=TokenUsage(100, 50), model_name="gpt-4"):
    """Create an orchestrator chat model returning a fixed response."""
    model = Mock()
    model.model_name = model_name
    model.invoke = AsyncMock(return_value=ProviderResponse(
        content=content,
        model=model_name,
        usage=usage,
        tool_calls=tool_calls or [],
        metadata={"id": "chatcmpl-1", "finish_reason": "tool_calls" if tool_calls else "stop"},
    ))
    return model


def make_recording_tool(name, log):
    async def execute(params, tracker=None):
        log.append((name, params, tracker))
        return {"success": True, "response": f"{name} done"}

    return ExecutableTool(
        Tool(FunctionDefinition(name, f"{name} tool", {"type": "object", "properties": {}})),
        execute,
    )


class FakeToolModel:
    """Provider model used by factory-built tools."""

    def __init__(self, model, api_key=None, **options):
        self.model_name = model

    async def invoke(self, messages, tools=None, max_tokens=None):
        return ProviderResponse(content="tool answer", model=self.model_name, usage=TokenUsage(1000, 500))


OPENAI_TOOL = ToolConfig(
    name="openai",
    description="Ask OpenAI",
    provider="openai",
    default_model="gpt-4",
    model_options=("gpt-4",),
)


class TestChatWithoutBudget:
    """Test untracked exchanges."""

    @pytest.mark.asyncio
    async def test_plain_response(self):
        model = make_model()
        ai = create_ai_with_tools(model, create_tool_collection([]))

        result = await ai.chat("Hello")

        assert result == {
            "response": "Done",
            "metadata": {"id": "chatcmpl-1", "finish_reason": "stop"},
        }
        model.invoke.assert_awaited_once_with(
            [{"role": "user", "content": "Hello"}], tools=None, max_tokens=None
        )

    @pytest.mark.asyncio
    async def test_tools_bound_to_model(self):
        model = make_model()
        collection = create_tool_collection([make_recording_tool("echo", [])])
        ai = create_ai_with_tools(model, collection)

        await ai.chat("Hello")

        assert model.invoke.await_args.kwargs["tools"] == collection.tools_for_chat_completion

    @pytest.mark.asyncio
    async def test_conservative_mode_needs_budget(self):
        model = make_model()
        ai = create_ai_with_tools(model, create_tool_collection([]))

        await ai.chat("Hello", BudgetOptions(conservative_mode=True))

        assert model.invoke.await_args.kwargs["max_tokens"] is None

    @pytest.mark.asyncio
    async def test_tool_calls_without_tracker(self):
        log = []
        model = make_model(tool_calls=[ToolCallRequest("echo", '{"x": 1}', id="call_1")])
        ai = create_ai_with_tools(model, create_tool_collection([make_recording_tool("echo", log)]))

        result = await ai.chat("Hello")

        assert "cost_tracker" not in result
        assert log == [("echo", {"x": 1}, None)]
        assert result["tool_calls"] == [{
            "tool_call": {"id": "call_1", "name": "echo", "arguments": '{"x": 1}'},
            "result": {"success": True, "response": "echo done"},
        }]


class TestChatWithBudget:
    """Test tracked exchanges."""

    @pytest.mark.asyncio
    async def test_orchestrator_usage_recorded(self):
        model = make_model()
        ai = create_ai_with_tools(model, create_tool_collection([]))

        result = await ai.chat("Hello", BudgetOptions(max_cost_cents=500))

        assert model.invoke.await_args.kwargs["max_tokens"] == 4096
        # 100 * $0.00003 + 50 * $0.00006 = $0.006 -> 1 cent
        assert result["cost_tracker"] == {
            "total_cost_cents": 1,
            "max_cost_cents": 500,
            "remaining_budget_cents": 499,
            "budget_used_percentage": pytest.approx(0.2),
            "total_queries": 1,
            "orchestrator_queries": 1,
            "tool_queries": 0,
        }

    @pytest.mark.asyncio
    async def test_conservative_mode_caps_orchestrator(self):
        model = make_model()
        ai = create_ai_with_tools(model, create_tool_collection([]))

        await ai.chat("Hello", BudgetOptions(max_cost_cents=500, conservative_mode=True))

        assert model.invoke.await_args.kwargs["max_tokens"] == 1024

    @pytest.mark.asyncio
    async def test_tools_share_tracker(self):
        log = []
        model = make_model(tool_calls=[
            ToolCallRequest("first", "{}", id="call_1"),
            ToolCallRequest("second", "{}", id="call_2"),
        ])
        collection = create_tool_collection([
            make_recording_tool("first", log),
            make_recording_tool("second", log),
        ])
        tracker = create_budget_tracker(500)
        ai = create_ai_with_tools(model, collection)

        with patch('agentic_budget.orchestrator.create_budget_tracker', return_value=tracker):
            await ai.chat("Hello", BudgetOptions(max_cost_cents=500))

        assert [entry[0] for entry in log] == ["first", "second"]
        assert all(entry[2] is tracker for entry in log)

    @pytest.mark.asyncio
    async def test_fresh_tracker_per_exchange(self):
        ai = create_ai_with_tools(make_model(), create_tool_collection([]))

        await ai.chat("one", BudgetOptions(max_cost_cents=500))
        result = await ai.chat("two", BudgetOptions(max_cost_cents=500))

        assert result["cost_tracker"]["total_queries"] == 1
        assert result["cost_tracker"]["total_cost_cents"] == 1

    @pytest.mark.asyncio
    async def test_factory_tool_usage_attributed(self):
        model = make_model(tool_calls=[
            ToolCallRequest("openai", json.dumps({"message": "What is 2+2?", "api_key": "sk"}), id="call_1"),
        ])
        ai = create_ai_with_tools(model, create_tool_collection([create_executable_tool(OPENAI_TOOL)]))

        with patch.dict(MODEL_CLASSES, {"openai": FakeToolModel}):
            result = await ai.chat("Ask OpenAI", BudgetOptions(max_cost_cents=500))

        summary = result["cost_tracker"]
        assert summary["orchestrator_queries"] == 1
        assert summary["tool_queries"] == 1
        assert summary["total_cost_cents"] == 1 + 6
        tool_result = result["tool_calls"][0]["result"]
        assert tool_result["response"] == "tool answer"
        assert tool_result["cost_tracker"]["tool_queries"] == 1

    @pytest.mark.asyncio
    async def test_orchestrator_spend_starves_tool(self):
        model = make_model(
            usage=TokenUsage(1000, 3000),
            tool_calls=[ToolCallRequest("openai", json.dumps({"message": "hello", "api_key": "sk"}))],
        )
        ai = create_ai_with_tools(model, create_tool_collection([create_executable_tool(OPENAI_TOOL)]))

        with patch.dict(MODEL_CLASSES, {"openai": FakeToolModel}):
            result = await ai.chat("go", BudgetOptions(max_cost_cents=30))

        # The orchestrator turn costs 21 cents; 9 remain, below the tool's estimate
        entry = result["tool_calls"][0]
        assert "result" not in entry
        assert entry["error"] == (
            "Insufficient budget: Query estimated to cost more than remaining budget of 9 cents"
        )
        assert result["cost_tracker"]["tool_queries"] == 0
        assert result["cost_tracker"]["total_cost_cents"] == 21


class TestChatFailures:
    """Test orchestrator and tool failures."""

    @pytest.mark.asyncio
    async def test_insufficient_budget_before_invoke(self):
        model = make_model()
        ai = create_ai_with_tools(model, create_tool_collection([]))

        with pytest.raises(InsufficientBudgetError, match="Orchestrator query estimated"):
            await ai.chat("Hello", BudgetOptions(max_cost_cents=0))
        model.invoke.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_provider_failure(self):
        model = make_model()
        model.invoke = AsyncMock(side_effect=ConnectionError("connection reset"))
        ai = create_ai_with_tools(model, create_tool_collection([]))

        with pytest.raises(ProviderError, match="Orchestrator execution failed: connection reset"):
            await ai.chat("Hello", BudgetOptions(max_cost_cents=500))

    @pytest.mark.asyncio
    async def test_failed_tool_does_not_stop_others(self):
        log = []
        model = make_model(tool_calls=[
            ToolCallRequest("missing", "{}", id="call_1"),
            ToolCallRequest("echo", "{not json", id="call_2"),
            ToolCallRequest("echo", "{}", id="call_3"),
        ])
        ai = create_ai_with_tools(model, create_tool_collection([make_recording_tool("echo", log)]))

        result = await ai.chat("Hello")

        entries = result["tool_calls"]
        assert entries[0]["error"] == "Tool 'missing' not found in registry"
        assert entries[1]["error"].startswith("Tool execution failed: invalid arguments for 'echo'")
        assert entries[2]["result"] == {"success": True, "response": "echo done"}
        assert len(log) == 1

    @pytest.mark.asyncio
    async def test_tool_provider_failure_reported(self):
        class FailingModel(FakeToolModel):
            async def invoke(self, messages, tools=None, max_tokens=None):
                raise RuntimeError("quota exceeded")

        model = make_model(tool_calls=[
            ToolCallRequest("openai", json.dumps({"message": "hi", "api_key": "sk"})),
        ])
        ai = create_ai_with_tools(model, create_tool_collection([create_executable_tool(OPENAI_TOOL)]))

        with patch.dict(MODEL_CLASSES, {"openai": FailingModel}):
            result = await ai.chat("Hello", BudgetOptions(max_cost_cents=500))

        assert result["tool_calls"][0]["error"] == "OpenAI execution failed: quota exceeded"
        assert result["cost_tracker"]["tool_queries"] == 0
