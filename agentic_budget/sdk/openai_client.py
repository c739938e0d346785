"""
OpenAI chat model adapter.

Wraps AsyncOpenAI chat completions (and the Responses API, used for MCP
passthrough) and normalizes results into ProviderResponse.
"""

from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from ..core.token_counter import TokenUsage
from .models import ProviderResponse, ToolCallRequest


def _chat_usage(usage: Any) -> Optional[TokenUsage]:
    if usage is None:
        return None
    return TokenUsage(
        input_tokens=usage.prompt_tokens or 0,
        output_tokens=usage.completion_tokens or 0,
    )


def _responses_usage(usage: Any) -> Optional[TokenUsage]:
    if usage is None:
        return None
    return TokenUsage(
        input_tokens=usage.input_tokens or 0,
        output_tokens=usage.output_tokens or 0,
    )


class OpenAIChatModel:
    """Async OpenAI chat model.

    Provider errors are propagated without modification; the execution
    guard wraps them.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        client: Optional[AsyncOpenAI] = None,
        **options: Any
    ):
        """Initialize the OpenAI chat model.

        Args:
            model: OpenAI model name (required)
            api_key: API key; the SDK reads OPENAI_API_KEY when omitted
            client: Preconfigured AsyncOpenAI client
            **options: Extra parameters sent with every request (e.g. temperature)

        Raises:
            ValueError: If model is missing/empty
        """
        if not model or not model.strip():
            raise ValueError("model is required and cannot be empty")

        self.model_name = model
        self.options = options
        self.client = client if client is not None else AsyncOpenAI(api_key=api_key)

    async def invoke(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        max_tokens: Optional[int] = None,
    ) -> ProviderResponse:
        """Create a chat completion.

        Args:
            messages: List of message dictionaries (required)
            tools: Function tools in Chat Completions format
            max_tokens: Maximum tokens to generate (optional)

        Returns:
            Normalized provider response

        Raises:
            ValueError: If messages is empty
            OpenAI API errors: Propagated without modification
        """
        if not messages:
            raise ValueError("messages is required and cannot be empty")

        params: Dict[str, Any] = {"model": self.model_name, "messages": messages, **self.options}
        if tools:
            params["tools"] = tools
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        response = await self.client.chat.completions.create(**params)

        choice = response.choices[0]
        tool_calls = [
            ToolCallRequest(
                name=call.function.name,
                arguments=call.function.arguments or "{}",
                id=call.id,
            )
            for call in (choice.message.tool_calls or [])
        ]

        return ProviderResponse(
            content=choice.message.content or "",
            model=self.model_name,
            usage=_chat_usage(response.usage),
            tool_calls=tool_calls,
            metadata={"id": response.id, "finish_reason": choice.finish_reason},
        )

    async def respond(
        self,
        input_text: str,
        tools: Optional[List[Dict[str, Any]]] = None,
        max_output_tokens: Optional[int] = None,
    ) -> ProviderResponse:
        """Create a Responses API response, letting OpenAI run any MCP tools.

        Args:
            input_text: User input
            tools: Responses API tools (e.g. ``{"type": "mcp", ...}``)
            max_output_tokens: Maximum tokens to generate (optional)

        Returns:
            Normalized provider response
        """
        params: Dict[str, Any] = {"model": self.model_name, "input": input_text, **self.options}
        if tools:
            params["tools"] = tools
        if max_output_tokens is not None:
            params["max_output_tokens"] = max_output_tokens

        response = await self.client.responses.create(**params)

        return ProviderResponse(
            content=response.output_text or "",
            model=self.model_name,
            usage=_responses_usage(response.usage),
            metadata={"id": response.id},
        )
