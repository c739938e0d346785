"""
Pricing calculations and rate management.

Per-token pricing and context-window metadata for supported models,
and the cent-level cost computation shared by estimates and recorded usage.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_CEILING
from typing import Dict, List, Optional

from .token_counter import TokenUsage


@dataclass(frozen=True)
class PricingEntry:
    """Per-token pricing and token limits for a specific model."""
    max_total_tokens: int
    max_input_tokens: int
    max_output_tokens: int
    input_cost_per_token: Decimal  # Dollars per input token
    output_cost_per_token: Decimal  # Dollars per output token


@dataclass(frozen=True)
class PricingTable:
    """Static pricing table keyed by exact model identifier."""
    prices: Dict[str, PricingEntry]

    def get_pricing(self, model: str) -> Optional[PricingEntry]:
        """Get pricing for a specific model.

        An unknown model is an expected condition, not an error.

        Args:
            model: Model identifier

        Returns:
            PricingEntry for the model, or None if it is not in the table
        """
        return self.prices.get(model)

    def __contains__(self, model: object) -> bool:
        return model in self.prices

    def models(self) -> List[str]:
        """Model identifiers in the table, sorted."""
        return sorted(self.prices)


def _entry(max_total: int, max_input: int, max_output: int, input_cost: str, output_cost: str) -> PricingEntry:
    return PricingEntry(
        max_total_tokens=max_total,
        max_input_tokens=max_input,
        max_output_tokens=max_output,
        input_cost_per_token=Decimal(input_cost),
        output_cost_per_token=Decimal(output_cost),
    )


# Fixed pricing table - no dynamic fetching
PRICING_TABLE = PricingTable({
    "gpt-4": _entry(8192, 8192, 4096, "0.00003", "0.00006"),
    "gpt-4-turbo": _entry(128000, 128000, 4096, "0.00001", "0.00003"),
    "gpt-4-1106-preview": _entry(128000, 128000, 4096, "0.00001", "0.00003"),
    "gpt-4o": _entry(128000, 128000, 16384, "0.0000025", "0.00001"),
    "gpt-4o-mini": _entry(128000, 128000, 16384, "0.00000015", "0.0000006"),
    "gpt-3.5-turbo": _entry(16385, 16385, 4096, "0.0000015", "0.000002"),
    "claude-3-5-sonnet-20240620": _entry(200000, 200000, 8192, "0.000003", "0.000015"),
    "claude-3-opus-20240229": _entry(200000, 200000, 4096, "0.000015", "0.000075"),
    "claude-3-sonnet-20240229": _entry(200000, 200000, 4096, "0.000003", "0.000015"),
    "claude-3-haiku-20240307": _entry(200000, 200000, 4096, "0.00000025", "0.00000125"),
})


def calculate_cost_cents(pricing: PricingEntry, usage: TokenUsage) -> int:
    """Calculate the cost of token usage in whole cents with conservative rounding.

    Args:
        pricing: Pricing entry for the model
        usage: Token usage data

    Returns:
        Total cost in cents, rounded UP to the next whole cent
    """
    input_cost = Decimal(usage.input_tokens) * pricing.input_cost_per_token
    output_cost = Decimal(usage.output_tokens) * pricing.output_cost_per_token

    # Dollars to cents, always rounding UP so spend is never under-counted
    total_cents = (input_cost + output_cost) * Decimal("100")
    return int(total_cents.to_integral_value(rounding=ROUND_CEILING))
