"""
Provider SDK adapters for agentic_budget.

Normalizes OpenAI and Anthropic chat APIs behind one async interface.
"""

from .anthropic_client import AnthropicChatModel
from .models import ChatModel, ProviderResponse, ToolCallRequest
from .openai_client import OpenAIChatModel

__all__ = [
    "AnthropicChatModel",
    "ChatModel",
    "OpenAIChatModel",
    "ProviderResponse",
    "ToolCallRequest",
]
