"""
Orchestrator loop.

Sends the user's message to a chat model bound to a tool collection, runs
the tool calls the model requests, and returns one result envelope. When
the caller sets a budget, a fresh BudgetTracker is shared by the
orchestrator turn and every tool call it triggers.
"""

import logging
from typing import Any, Dict, List, Optional

from .config.loader import BudgetOptions
from .core.budget import BudgetTracker, UsageSource, create_budget_tracker, estimate_cost_cents
from .core.guardrails import CONSERVATIVE_MAX_TOKENS, attach_budget_summary, execute_guarded
from .core.pricing import PRICING_TABLE, PricingTable
from .exceptions import AgenticBudgetError
from .sdk.models import ChatModel, ToolCallRequest
from .sdk.openai_client import OpenAIChatModel
from .tools.base import ToolCall, ToolCollection
from .tools.mcp import ExecutableMCPTool

logger = logging.getLogger(__name__)

DEFAULT_MCP_MODEL = "gpt-4o"


def _create_tracker(options: BudgetOptions, pricing_table: PricingTable) -> Optional[BudgetTracker]:
    if not options.tracking_enabled:
        return None
    return create_budget_tracker(options.max_cost_cents, pricing_table=pricing_table)


class AIWithTools:
    """A chat model bound to a tool collection.

    Usage::

        ai = create_ai_with_tools(OpenAIChatModel("gpt-4"), create_default_tool_collection())
        result = await ai.chat("Summarize this repo", BudgetOptions(max_cost_cents=500))
        print(result["response"], result["cost_tracker"])
    """

    def __init__(
        self,
        model: ChatModel,
        tool_collection: ToolCollection,
        pricing_table: Optional[PricingTable] = None,
    ):
        self.model = model
        self.tools = tool_collection
        self.pricing_table = pricing_table if pricing_table is not None else PRICING_TABLE

    async def chat(self, message: str, options: Optional[BudgetOptions] = None) -> Dict[str, Any]:
        """Run one exchange: the orchestrator turn plus any tool calls it requests.

        Args:
            message: User message
            options: Budget options; no budget is tracked when omitted

        Returns:
            Envelope with ``response`` and ``metadata``, ``tool_calls`` when the
            model requested tools, and ``cost_tracker`` when a budget was set

        Raises:
            InsufficientBudgetError: If the orchestrator turn is not affordable
            ProviderError: If the orchestrator's provider call fails
        """
        options = options or BudgetOptions()
        tracker = _create_tracker(options, self.pricing_table)
        token_ceiling = CONSERVATIVE_MAX_TOKENS if options.conservative_mode else None
        bound_tools = self.tools.tools_for_chat_completion or None

        async def invoke(max_tokens: Optional[int]):
            return await self.model.invoke(
                [{"role": "user", "content": message}], tools=bound_tools, max_tokens=max_tokens
            )

        response = await execute_guarded(
            invoke,
            prompt=message,
            model=self.model.model_name,
            source=UsageSource.ORCHESTRATOR,
            display_name="Orchestrator",
            tracker=tracker,
            token_ceiling=token_ceiling,
        )

        result: Dict[str, Any] = {"response": response.content, "metadata": response.metadata}
        if response.tool_calls:
            result["tool_calls"] = await self._run_tool_calls(response.tool_calls, tracker)

        return attach_budget_summary(result, tracker)

    async def _run_tool_calls(
        self,
        requests: List[ToolCallRequest],
        tracker: Optional[BudgetTracker],
    ) -> List[Dict[str, Any]]:
        # Sequential: each pre-flight check must see the spend of the previous call
        results = []
        for request in requests:
            entry: Dict[str, Any] = {"tool_call": request.to_dict()}
            try:
                entry["result"] = await self.tools.execute(ToolCall.from_request(request), tracker)
            except AgenticBudgetError as e:
                logger.warning("Tool call %s failed: %s", request.name, e)
                entry["error"] = str(e)
            results.append(entry)
        return results


def create_ai_with_tools(
    model: ChatModel,
    tool_collection: ToolCollection,
    pricing_table: Optional[PricingTable] = None,
) -> AIWithTools:
    """Bind a tool collection to a chat model."""
    return AIWithTools(model, tool_collection, pricing_table=pricing_table)


class AIWithMCPTools:
    """An OpenAI model with MCP tools run by the Responses API."""

    def __init__(
        self,
        mcp_tools: List[ExecutableMCPTool],
        model: OpenAIChatModel,
        options: Optional[BudgetOptions] = None,
        pricing_table: Optional[PricingTable] = None,
    ):
        self.mcp_tools = list(mcp_tools)
        self.model = model
        self.options = options or BudgetOptions()
        self.pricing_table = pricing_table if pricing_table is not None else PRICING_TABLE

    async def chat(self, message: str) -> Dict[str, Any]:
        """Send one message with the MCP tools attached.

        Returns:
            Envelope with ``response``, ``model``, ``usage`` and ``cost`` (cents,
            None without reported usage), plus ``cost_tracker`` when a budget was set

        Raises:
            InsufficientBudgetError: If the call is not affordable
            ProviderError: If the provider call fails
        """
        tracker = _create_tracker(self.options, self.pricing_table)
        token_ceiling = CONSERVATIVE_MAX_TOKENS if self.options.conservative_mode else None
        responses_tools = [tool.to_responses_tool() for tool in self.mcp_tools]

        async def invoke(max_tokens: Optional[int]):
            return await self.model.respond(message, tools=responses_tools, max_output_tokens=max_tokens)

        response = await execute_guarded(
            invoke,
            prompt=message,
            model=self.model.model_name,
            source=UsageSource.ORCHESTRATOR,
            display_name="MCP chat",
            tracker=tracker,
            token_ceiling=token_ceiling,
        )

        cost = None
        if response.usage is not None:
            cost = estimate_cost_cents(
                self.pricing_table,
                self.model.model_name,
                response.usage.input_tokens,
                response.usage.output_tokens,
            )

        result = {
            "response": response.content,
            "model": self.model.model_name,
            "usage": response.usage.to_dict() if response.usage is not None else None,
            "cost": cost,
        }
        return attach_budget_summary(result, tracker)


def create_ai_with_mcp_tools(
    mcp_tools: List[ExecutableMCPTool],
    *,
    api_key: Optional[str] = None,
    model: str = DEFAULT_MCP_MODEL,
    max_cost_cents: Optional[int] = None,
    conservative_mode: bool = False,
    pricing_table: Optional[PricingTable] = None,
    **model_options: Any
) -> AIWithMCPTools:
    """Create an OpenAI-backed chat interface for MCP tools.

    Args:
        mcp_tools: MCP tools to attach to every request
        api_key: OpenAI API key; the SDK reads OPENAI_API_KEY when omitted
        model: OpenAI model name
        max_cost_cents: Budget per chat call; untracked when omitted
        conservative_mode: Cap output tokens at CONSERVATIVE_MAX_TOKENS
        pricing_table: Pricing table for cost estimates
        **model_options: Passed to OpenAIChatModel
    """
    return AIWithMCPTools(
        mcp_tools,
        OpenAIChatModel(model, api_key=api_key, **model_options),
        options=BudgetOptions(max_cost_cents=max_cost_cents, conservative_mode=conservative_mode),
        pricing_table=pricing_table,
    )
