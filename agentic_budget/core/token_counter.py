"""
Token counting and usage tracking.

Holds provider-reported token counts and the character-based estimate
used before a call has been made.
"""

import math
from dataclasses import dataclass

# Heuristic for English-like text; not a tokenizer.
CHARS_PER_TOKEN = 4


@dataclass(frozen=True)
class TokenUsage:
    """Token usage reported by a provider for one completed call.

    Contains exact token counts without estimation or model-specific logic.
    """
    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens used (input + output)."""
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> dict:
        return {
            "input_tokens": self.input_tokens,
            "output_tokens": self.output_tokens,
            "total_tokens": self.total_tokens,
        }


def estimate_tokens_from_chars(char_count: int, chars_per_token: int = CHARS_PER_TOKEN) -> int:
    """Approximate the input token count of a prompt from its length.

    Args:
        char_count: Prompt length in characters
        chars_per_token: Characters assumed per token

    Returns:
        Estimated token count, rounded up
    """
    return math.ceil(char_count / chars_per_token)
