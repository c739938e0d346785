"""
Tool factory.

Turns declarative ToolConfig records into tool schemas and cost-aware
execution functions.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..core.budget import BudgetTracker, UsageSource
from ..core.guardrails import create_tool_response, execute_guarded
from ..exceptions import ToolExecutionError
from ..sdk.anthropic_client import AnthropicChatModel
from ..sdk.openai_client import OpenAIChatModel
from .base import ExecutableTool, FunctionDefinition, Tool, ToolExecutor

# Chat model class per provider
MODEL_CLASSES = {
    "openai": OpenAIChatModel,
    "anthropic": AnthropicChatModel,
}

# Display names used in descriptions and error messages
PROVIDER_DISPLAY_NAMES = {
    "openai": "OpenAI",
    "anthropic": "Anthropic Claude",
    "google": "Google",
    "cohere": "Cohere",
    "huggingface": "Hugging Face",
    "custom": "custom",
}

_BUILTIN_PARAMETERS = ("message", "api_key", "model_name", "max_tokens")


@dataclass(frozen=True)
class ToolConfig:
    """Declarative configuration for a provider-backed tool."""
    name: str
    description: str
    provider: str
    default_model: str
    model_options: Tuple[str, ...]
    custom_parameters: Dict[str, Any] = field(default_factory=dict)
    custom_executor: Optional[ToolExecutor] = field(default=None, compare=False)

    def __post_init__(self):
        """Validate required tool fields."""
        if not self.name or not self.name.strip():
            raise ValueError("tool name is required and cannot be empty")
        if not self.default_model:
            raise ValueError(f"default_model is required for tool '{self.name}'")
        if self.default_model not in self.model_options:
            raise ValueError(
                f"default_model '{self.default_model}' for tool '{self.name}' "
                f"must be one of model_options"
            )

    @property
    def display_name(self) -> str:
        return PROVIDER_DISPLAY_NAMES.get(self.provider, self.name)


def create_tool_schema(config: ToolConfig) -> Tool:
    """Generate the function schema for a configured tool."""
    provider_display = config.display_name

    properties = {
        "message": {
            "type": "string",
            "description": f"The message or prompt to send to the {provider_display} model",
        },
        "api_key": {
            "type": "string",
            "description": f"The API key for accessing {provider_display} services",
        },
        "model_name": {
            "type": "string",
            "description": f"The {provider_display} model to use for generation",
            "enum": list(config.model_options),
        },
        "max_tokens": {
            "type": "integer",
            "description": (
                "Maximum number of tokens to generate "
                "(optional, will use cost-aware default if not specified)"
            ),
        },
        **config.custom_parameters,
    }

    return Tool(FunctionDefinition(
        name=config.name,
        description=config.description,
        parameters={
            "type": "object",
            "properties": properties,
            "required": ["message", "api_key"],
            "additionalProperties": False,
        },
    ))


def create_execution_function(config: ToolConfig) -> ToolExecutor:
    """Create the execution coroutine for a configured tool.

    The built-in path sends the message to the provider's chat model through
    the execution guard; a custom executor replaces it entirely.
    """

    async def execute(params: Dict[str, Any], tracker: Optional[BudgetTracker] = None) -> Dict[str, Any]:
        if config.custom_executor is not None:
            return await config.custom_executor(params, tracker)

        message = params.get("message")
        if not isinstance(message, str) or not message:
            raise ToolExecutionError("'message' is required", tool_name=config.name)

        api_key = params.get("api_key")
        model_name = params.get("model_name") or config.default_model
        max_tokens = params.get("max_tokens")
        if max_tokens is not None and (
            isinstance(max_tokens, bool) or not isinstance(max_tokens, int) or max_tokens <= 0
        ):
            raise ToolExecutionError("'max_tokens' must be a positive integer", tool_name=config.name)
        extra_options = {k: v for k, v in params.items() if k not in _BUILTIN_PARAMETERS}

        async def invoke(resolved_max_tokens: Optional[int]):
            model_class = MODEL_CLASSES.get(config.provider)
            if model_class is None:
                raise ValueError(f"Unsupported provider: {config.provider}")
            chat_model = model_class(model_name, api_key=api_key, **extra_options)
            return await chat_model.invoke(
                [{"role": "user", "content": message}], max_tokens=resolved_max_tokens
            )

        response = await execute_guarded(
            invoke,
            prompt=message,
            model=model_name,
            source=UsageSource.TOOL,
            display_name=config.display_name,
            max_tokens=max_tokens,
            tracker=tracker,
            tool_name=config.name,
        )
        return create_tool_response(response.content, model_name, response.usage, tracker)

    return execute


def create_executable_tool(config: ToolConfig) -> ExecutableTool:
    """Create a complete executable tool from configuration."""
    return ExecutableTool(create_tool_schema(config), create_execution_function(config))


def create_tools_from_configs(configs: List[ToolConfig]) -> List[ExecutableTool]:
    """Create multiple tools from configurations."""
    return [create_executable_tool(config) for config in configs]
