"""
Anthropic chat model adapter.

Wraps AsyncAnthropic messages and translates OpenAI-style messages and
function tools into the Messages API format.
"""

import json
from typing import Any, Dict, List, Optional, Tuple

from anthropic import AsyncAnthropic

from ..core.token_counter import TokenUsage
from .models import ProviderResponse, ToolCallRequest

# The Messages API requires max_tokens on every request
DEFAULT_MAX_TOKENS = 4096


def to_anthropic_tool(tool: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a Chat Completions function tool to an Anthropic tool definition."""
    function = tool["function"]
    return {
        "name": function["name"],
        "description": function.get("description", ""),
        "input_schema": function["parameters"],
    }


def _split_system(messages: List[Dict[str, Any]]) -> Tuple[Optional[str], List[Dict[str, Any]]]:
    # Anthropic takes system prompts as a separate parameter
    system_parts = []
    converted = []
    for message in messages:
        if message["role"] == "system":
            system_parts.append(message["content"])
        else:
            converted.append({"role": message["role"], "content": message["content"]})
    system = "\n\n".join(system_parts) if system_parts else None
    return system, converted


class AnthropicChatModel:
    """Async Anthropic chat model."""

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        client: Optional[AsyncAnthropic] = None,
        **options: Any
    ):
        """Initialize the Anthropic chat model.

        Args:
            model: Anthropic model name (required)
            api_key: API key; the SDK reads ANTHROPIC_API_KEY when omitted
            client: Preconfigured AsyncAnthropic client
            **options: Extra parameters sent with every request

        Raises:
            ValueError: If model is missing/empty
        """
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")

        self.model_name = model
        self.options = options
        self.client = client if client is not None else AsyncAnthropic(api_key=api_key)

    async def invoke(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        max_tokens: Optional[int] = None,
    ) -> ProviderResponse:
        """Create a message.

        Raises:
            ValueError: If messages is empty
            Anthropic API errors: Propagated without modification
        """
        if not messages:
            raise ValueError("messages is required and cannot be empty")

        system, converted = _split_system(messages)
        params: Dict[str, Any] = {
            "model": self.model_name,
            "messages": converted,
            "max_tokens": max_tokens if max_tokens is not None else DEFAULT_MAX_TOKENS,
            **self.options,
        }
        if system:
            params["system"] = system
        if tools:
            params["tools"] = [to_anthropic_tool(tool) for tool in tools]

        response = await self.client.messages.create(**params)

        text_parts = []
        tool_calls = []
        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append(
                    ToolCallRequest(name=block.name, arguments=json.dumps(block.input), id=block.id)
                )

        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                input_tokens=response.usage.input_tokens or 0,
                output_tokens=response.usage.output_tokens or 0,
            )

        return ProviderResponse(
            content="".join(text_parts),
            model=self.model_name,
            usage=usage,
            tool_calls=tool_calls,
            metadata={"id": response.id, "stop_reason": response.stop_reason},
        )
