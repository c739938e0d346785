"""
Exception hierarchy for agentic_budget.

All errors raised by the library derive from AgenticBudgetError so callers
can catch one base class.
"""

from typing import Optional


class AgenticBudgetError(Exception):
    """Base exception for all agentic_budget errors."""


class InsufficientBudgetError(AgenticBudgetError):
    """Raised before a call when its estimated cost exceeds the remaining budget.

    No provider call has been made. Retry only after reducing the request
    or raising the budget.
    """

    def __init__(self, remaining_budget_cents: int, subject: str = "Query"):
        self.remaining_budget_cents = remaining_budget_cents
        super().__init__(
            f"Insufficient budget: {subject} estimated to cost more than "
            f"remaining budget of {remaining_budget_cents} cents"
        )


class ProviderError(AgenticBudgetError):
    """Raised when the underlying LLM provider call fails.

    The message is prefixed with the name of the failing tool or of the
    orchestrator. The original exception is chained as ``__cause__``.
    """

    def __init__(self, source: str, message: str):
        self.source = source
        self.original_message = message
        super().__init__(f"{source} execution failed: {message}")


class ToolNotFoundError(AgenticBudgetError):
    """Raised when a tool call names a tool missing from the registry."""

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' not found in registry")


class ToolExecutionError(AgenticBudgetError):
    """Raised when a tool call cannot be executed (bad arguments, executor bug)."""

    def __init__(self, message: str, tool_name: Optional[str] = None):
        self.tool_name = tool_name
        super().__init__(f"Tool execution failed: {message}")
