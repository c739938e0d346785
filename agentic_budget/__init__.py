"""
agentic_budget - cost-aware LLM orchestration with tool calling.

Binds provider-backed tools to an orchestrator model and optionally
enforces a spending budget across the whole exchange.
"""

from .tools.dynamic import DynamicToolRegistry, create_default_tool_collection
from .config.loader import BudgetOptions, load_pricing_table, load_tool_definitions
from .core.budget import BudgetSummary, BudgetTracker, UsageRecord, UsageSource, create_budget_tracker
from .core.pricing import PRICING_TABLE, PricingEntry, PricingTable
from .exceptions import (
    AgenticBudgetError,
    InsufficientBudgetError,
    ProviderError,
    ToolExecutionError,
    ToolNotFoundError,
)
from .orchestrator import AIWithMCPTools, AIWithTools, create_ai_with_mcp_tools, create_ai_with_tools
from .sdk import AnthropicChatModel, OpenAIChatModel

__all__ = [
    "AIWithMCPTools",
    "AIWithTools",
    "AgenticBudgetError",
    "AnthropicChatModel",
    "BudgetOptions",
    "BudgetSummary",
    "BudgetTracker",
    "DynamicToolRegistry",
    "InsufficientBudgetError",
    "OpenAIChatModel",
    "PRICING_TABLE",
    "PricingEntry",
    "PricingTable",
    "ProviderError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "UsageRecord",
    "UsageSource",
    "create_ai_with_mcp_tools",
    "create_ai_with_tools",
    "create_budget_tracker",
    "create_default_tool_collection",
    "load_pricing_table",
    "load_tool_definitions",
]
