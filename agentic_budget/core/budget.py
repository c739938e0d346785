"""
Budget tracking for a single budgeted exchange.

The tracker is the single source of truth for spend-to-date within one
orchestrator turn and the tool calls it triggers. It decides whether a
prospective call is affordable and how many output tokens it may request.

All methods are synchronous and in-memory. Callers process tool calls one
at a time, so a pre-flight check always sees the spend left by the
previous call.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from .pricing import PRICING_TABLE, PricingEntry, PricingTable, calculate_cost_cents
from .token_counter import CHARS_PER_TOKEN, TokenUsage, estimate_tokens_from_chars

logger = logging.getLogger(__name__)

# Pricing substituted for unknown models, most capable first
DEFAULT_FALLBACK_MODELS: Tuple[str, ...] = ("gpt-4", "gpt-3.5-turbo")

# Output ceiling for models missing from the pricing table
UNKNOWN_MODEL_MAX_TOKENS = 4096

# Adaptive ceilings: (remaining budget fraction at or below, token cap)
LOW_BUDGET_THRESHOLD = 0.10
LOW_BUDGET_MAX_TOKENS = 512
REDUCED_BUDGET_THRESHOLD = 0.30
REDUCED_BUDGET_MAX_TOKENS = 2048


class UsageSource(Enum):
    """Which part of the exchange made a call."""
    ORCHESTRATOR = "orchestrator"
    TOOL = "tool"


@dataclass(frozen=True)
class UsageRecord:
    """Immutable record of one completed LLM call.

    Created only from provider-reported token counts; never modified once
    appended to a tracker's history.
    """
    model: str
    input_tokens: int
    output_tokens: int
    cost_cents: int
    source: UsageSource
    tool_name: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        """Validate that only tool calls carry a tool name."""
        if self.tool_name is not None and self.source is not UsageSource.TOOL:
            raise ValueError("tool_name is only valid for tool usage records")


@dataclass(frozen=True)
class BudgetSummary:
    """Read-only snapshot of a tracker's state."""
    total_cost_cents: int
    max_cost_cents: int
    remaining_budget_cents: int
    budget_used_percentage: float
    total_queries: int
    orchestrator_queries: int
    tool_queries: int

    def to_dict(self) -> dict:
        return asdict(self)


def resolve_pricing(
    pricing_table: PricingTable,
    model: str,
    fallback_models: Sequence[str] = DEFAULT_FALLBACK_MODELS,
) -> Optional[PricingEntry]:
    """Find pricing for a model, substituting the first fallback model present.

    Returns:
        The model's pricing, a fallback model's pricing, or None
    """
    pricing = pricing_table.get_pricing(model)
    if pricing is not None:
        return pricing

    for fallback in fallback_models:
        pricing = pricing_table.get_pricing(fallback)
        if pricing is not None:
            logger.warning("No pricing for model %r, estimating with %r pricing", model, fallback)
            return pricing

    logger.warning("No pricing for model %r and no fallback pricing, estimating zero cost", model)
    return None


def estimate_cost_cents(
    pricing_table: PricingTable,
    model: str,
    input_tokens: int,
    output_tokens: int,
    fallback_models: Sequence[str] = DEFAULT_FALLBACK_MODELS,
) -> int:
    """Estimate the cost of a call in whole cents, rounded up.

    Args:
        pricing_table: Pricing table to look the model up in
        model: Model identifier
        input_tokens: Input token count
        output_tokens: Output token count
        fallback_models: Models whose pricing stands in for an unknown model

    Returns:
        Cost in cents; zero when no pricing can be found
    """
    pricing = resolve_pricing(pricing_table, model, fallback_models)
    if pricing is None:
        return 0
    return calculate_cost_cents(pricing, TokenUsage(input_tokens, output_tokens))


class BudgetTracker:
    """Running spend, remaining budget and usage history for one exchange.

    Usage::

        tracker = create_budget_tracker(500)
        if tracker.can_afford_query("gpt-4", len(prompt)):
            ...
            tracker.add_usage(record)
        print(tracker.get_summary())
    """

    def __init__(
        self,
        max_cost_cents: int,
        pricing_table: Optional[PricingTable] = None,
        fallback_models: Sequence[str] = DEFAULT_FALLBACK_MODELS,
        chars_per_token: int = CHARS_PER_TOKEN,
    ):
        """Initialize a tracker with a fixed budget ceiling.

        Args:
            max_cost_cents: Budget ceiling in cents, fixed for the tracker's lifetime
            pricing_table: Pricing table to estimate against (defaults to PRICING_TABLE)
            fallback_models: Models whose pricing stands in for unknown models, in order
            chars_per_token: Characters assumed per token in pre-flight estimates

        Raises:
            ValueError: If max_cost_cents is negative or chars_per_token is not positive
        """
        if max_cost_cents < 0:
            raise ValueError("max_cost_cents must be >= 0")
        if chars_per_token <= 0:
            raise ValueError("chars_per_token must be > 0")

        self.max_cost_cents = max_cost_cents
        self.pricing_table = pricing_table if pricing_table is not None else PRICING_TABLE
        self.fallback_models = tuple(fallback_models)
        self.chars_per_token = chars_per_token
        self._total_cost_cents = 0
        self._usage_history: List[UsageRecord] = []

    @property
    def total_cost_cents(self) -> int:
        return self._total_cost_cents

    @property
    def usage_history(self) -> Tuple[UsageRecord, ...]:
        return tuple(self._usage_history)

    def remaining_budget_cents(self) -> int:
        """Budget left in cents, never negative even after overspend."""
        return max(0, self.max_cost_cents - self._total_cost_cents)

    def can_afford(self, cost_cents: int) -> bool:
        """Check an already-known cost against the remaining budget (inclusive)."""
        return cost_cents <= self.remaining_budget_cents()

    def estimate_cost(self, model: str, input_tokens: int, output_tokens: int) -> int:
        """Estimate the cost of a call in whole cents, rounded up.

        Unknown models are priced as the first available fallback model;
        with no fallback pricing either, the estimate is zero.
        """
        return estimate_cost_cents(
            self.pricing_table, model, input_tokens, output_tokens, self.fallback_models
        )

    def estimate_query_cost(
        self,
        model: str,
        prompt_length: int,
        expected_output_tokens: Optional[int] = None,
    ) -> int:
        """Estimate the cost of a call that has not been made yet.

        Args:
            model: Model identifier
            prompt_length: Prompt length in characters
            expected_output_tokens: Expected output tokens; defaults to the
                adaptive ceiling from get_default_max_tokens()

        Returns:
            Estimated cost in cents
        """
        input_tokens = estimate_tokens_from_chars(prompt_length, self.chars_per_token)
        if expected_output_tokens is None:
            expected_output_tokens = self.get_default_max_tokens(model)
        return self.estimate_cost(model, input_tokens, expected_output_tokens)

    def can_afford_query(
        self,
        model: str,
        prompt_length: int,
        expected_output_tokens: Optional[int] = None,
    ) -> bool:
        """Check whether a prospective call fits in the remaining budget.

        Never raises. If the cost cannot be estimated the call is assumed
        affordable and its actual cost is recorded afterwards.
        """
        try:
            estimated_cost = self.estimate_query_cost(model, prompt_length, expected_output_tokens)
        except Exception as e:
            logger.warning("Cost estimate failed for model %r, assuming affordable: %s", model, e)
            return True
        return self.can_afford(estimated_cost)

    def remaining_budget_fraction(self) -> float:
        """Remaining budget as a fraction of the ceiling; 0.0 for a zero ceiling."""
        if self.max_cost_cents == 0:
            return 0.0
        return self.remaining_budget_cents() / self.max_cost_cents

    def get_default_max_tokens(self, model: str) -> int:
        """Output token ceiling for the next call, tightened as budget depletes.

        Tiers by remaining budget:
        - above 30%: the model's full output capacity
        - 10% to 30%: at most 2048 tokens
        - 10% or less: at most 512 tokens

        Unknown models get UNKNOWN_MODEL_MAX_TOKENS regardless of budget.
        """
        pricing = self.pricing_table.get_pricing(model)
        if pricing is None:
            return UNKNOWN_MODEL_MAX_TOKENS

        model_max = min(pricing.max_output_tokens, pricing.max_total_tokens)
        remaining = self.remaining_budget_fraction()

        if remaining <= LOW_BUDGET_THRESHOLD:
            return min(model_max, LOW_BUDGET_MAX_TOKENS)
        if remaining <= REDUCED_BUDGET_THRESHOLD:
            return min(model_max, REDUCED_BUDGET_MAX_TOKENS)
        return model_max

    def add_usage(self, record: UsageRecord) -> None:
        """Append a usage record and add its cost to the running total."""
        self._usage_history.append(record)
        self._total_cost_cents += record.cost_cents
        logger.debug(
            "Recorded %s usage for %s: %d cents (total %d/%d)",
            record.source.value, record.tool_name or record.model,
            record.cost_cents, self._total_cost_cents, self.max_cost_cents,
        )

    def get_summary(self) -> BudgetSummary:
        """Build a fresh snapshot of the tracker state.

        budget_used_percentage exceeds 100 on overspend. With a zero
        ceiling it is 0.0 until something is spent, then infinite.
        """
        if self.max_cost_cents:
            used_percentage = self._total_cost_cents / self.max_cost_cents * 100
        else:
            used_percentage = float("inf") if self._total_cost_cents else 0.0

        orchestrator_queries = sum(
            1 for r in self._usage_history if r.source is UsageSource.ORCHESTRATOR
        )
        tool_queries = sum(1 for r in self._usage_history if r.source is UsageSource.TOOL)

        return BudgetSummary(
            total_cost_cents=self._total_cost_cents,
            max_cost_cents=self.max_cost_cents,
            remaining_budget_cents=self.remaining_budget_cents(),
            budget_used_percentage=used_percentage,
            total_queries=len(self._usage_history),
            orchestrator_queries=orchestrator_queries,
            tool_queries=tool_queries,
        )


def create_budget_tracker(
    max_cost_cents: int,
    pricing_table: Optional[PricingTable] = None,
    **kwargs,
) -> BudgetTracker:
    """Create a fresh tracker for one budgeted exchange.

    Args:
        max_cost_cents: Budget ceiling in cents
        pricing_table: Pricing table to estimate against (defaults to PRICING_TABLE)
        **kwargs: Passed through to BudgetTracker

    Returns:
        A new BudgetTracker with no recorded usage
    """
    return BudgetTracker(max_cost_cents, pricing_table=pricing_table, **kwargs)
