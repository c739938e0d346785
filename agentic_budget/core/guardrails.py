"""
Cost-aware execution guard.

Wraps every LLM call, orchestrator turn or tool call, with the same
pre-flight and post-flight steps.

Execution Order:
1. PreCheck - reject the call if its estimated cost exceeds the remaining budget
2. ResolveLimit - explicit max_tokens wins, otherwise the adaptive ceiling
3. Invoke - call the provider; failures are wrapped and re-raised, never retried
4. PostRecord - record provider-reported usage against the tracker

Without a tracker the call is passed through untouched and nothing is recorded.
A call that fails at Invoke is never recorded, so it consumes no budget.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional

from .budget import BudgetTracker, UsageRecord, UsageSource
from .token_counter import TokenUsage
from ..exceptions import InsufficientBudgetError, ProviderError
from ..sdk.models import ProviderResponse

logger = logging.getLogger(__name__)

# Orchestrator ceiling when the caller asks for conservative mode
CONSERVATIVE_MAX_TOKENS = 1024


def prepare_execution(
    prompt: str,
    model: str,
    max_tokens: Optional[int] = None,
    tracker: Optional[BudgetTracker] = None,
    token_ceiling: Optional[int] = None,
    subject: str = "Query",
) -> Optional[int]:
    """Run the pre-flight check and resolve the output token limit.

    Args:
        prompt: Prompt text that will be sent
        model: Model identifier
        max_tokens: Caller's explicit token limit, if any
        tracker: Budget tracker, or None for an untracked call
        token_ceiling: Extra cap on the resolved limit (conservative mode)
        subject: What is being checked, used in the rejection message

    Returns:
        The max_tokens value to send to the provider

    Raises:
        ValueError: If an explicit max_tokens is not positive
        InsufficientBudgetError: If the estimated cost exceeds the remaining budget
    """
    if max_tokens is not None and max_tokens <= 0:
        raise ValueError("max_tokens must be a positive integer")
    if tracker is None:
        return max_tokens

    # The ceiling is applied before the estimate so the check prices the limit actually sent
    resolved = max_tokens if max_tokens is not None else tracker.get_default_max_tokens(model)
    if token_ceiling is not None:
        resolved = min(resolved, token_ceiling)

    if not tracker.can_afford_query(model, len(prompt), resolved):
        remaining = tracker.remaining_budget_cents()
        logger.info(
            "Rejected %s call to %s: estimate exceeds remaining budget of %d cents",
            subject.lower(), model, remaining,
        )
        raise InsufficientBudgetError(remaining, subject=subject)

    logger.debug("Resolved max_tokens=%d for %s", resolved, model)
    return resolved


def track_usage(
    model: str,
    usage: Optional[TokenUsage],
    tracker: Optional[BudgetTracker],
    source: UsageSource,
    tool_name: Optional[str] = None,
) -> Optional[UsageRecord]:
    """Record actual usage after a successful call.

    Skipped entirely when there is no tracker or the provider reported no
    usage; nothing is synthesized in that case.

    Returns:
        The recorded UsageRecord, or None if nothing was recorded
    """
    if tracker is None or usage is None:
        return None

    record = UsageRecord(
        model=model,
        input_tokens=usage.input_tokens,
        output_tokens=usage.output_tokens,
        cost_cents=tracker.estimate_cost(model, usage.input_tokens, usage.output_tokens),
        source=source,
        tool_name=tool_name,
    )
    tracker.add_usage(record)
    return record


def attach_budget_summary(envelope: Dict[str, Any], tracker: Optional[BudgetTracker]) -> Dict[str, Any]:
    """Add the tracker summary under ``cost_tracker``; leave the key absent when untracked."""
    if tracker is not None:
        envelope["cost_tracker"] = tracker.get_summary().to_dict()
    return envelope


def create_tool_response(
    content: Any,
    model: str,
    usage: Optional[TokenUsage],
    tracker: Optional[BudgetTracker],
) -> Dict[str, Any]:
    """Build the standard result envelope for a successful tool call."""
    envelope = {
        "success": True,
        "response": content,
        "model": model,
        "usage": usage.to_dict() if usage is not None else None,
    }
    return attach_budget_summary(envelope, tracker)


async def execute_guarded(
    invoke: Callable[[Optional[int]], Awaitable[ProviderResponse]],
    *,
    prompt: str,
    model: str,
    source: UsageSource,
    display_name: str,
    max_tokens: Optional[int] = None,
    tracker: Optional[BudgetTracker] = None,
    tool_name: Optional[str] = None,
    token_ceiling: Optional[int] = None,
) -> ProviderResponse:
    """Run one provider call through PreCheck, Invoke and PostRecord.

    Args:
        invoke: Coroutine function taking the resolved max_tokens
        prompt: Prompt text, used for the pre-flight estimate
        model: Model identifier
        source: Whether this is the orchestrator's call or a tool's
        display_name: Prefix for wrapped provider errors
        max_tokens: Caller's explicit token limit, if any
        tracker: Budget tracker, or None for an untracked call
        tool_name: Tool name recorded with tool usage
        token_ceiling: Extra cap on the resolved limit

    Returns:
        The provider response

    Raises:
        InsufficientBudgetError: If the pre-flight check fails
        ProviderError: If the provider call fails
    """
    subject = "Orchestrator query" if source is UsageSource.ORCHESTRATOR else "Query"
    resolved_max_tokens = prepare_execution(
        prompt, model, max_tokens, tracker, token_ceiling=token_ceiling, subject=subject
    )

    try:
        response = await invoke(resolved_max_tokens)
    except Exception as e:
        logger.warning("%s call to %s failed: %s", display_name, model, e)
        raise ProviderError(display_name, str(e) or type(e).__name__) from e

    track_usage(model, response.usage, tracker, source, tool_name=tool_name)
    return response
