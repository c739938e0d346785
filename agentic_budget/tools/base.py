"""
Tool schemas and tool collections.

Tools follow the OpenAI function-calling schema. A ToolCollection maps tool
names to executable tools and dispatches the tool calls a model requests.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..core.budget import BudgetTracker
from ..exceptions import AgenticBudgetError, ToolExecutionError, ToolNotFoundError
from ..sdk.models import ToolCallRequest

logger = logging.getLogger(__name__)

# execute(arguments, tracker) -> result envelope
ToolExecutor = Callable[[Dict[str, Any], Optional[BudgetTracker]], Awaitable[Dict[str, Any]]]


@dataclass(frozen=True)
class FunctionDefinition:
    """Function schema exposed to the model."""
    name: str
    description: str
    parameters: Dict[str, Any]
    strict: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters,
            "strict": self.strict,
        }


@dataclass(frozen=True)
class Tool:
    """A function tool in Chat Completions format."""
    function: FunctionDefinition
    type: str = "function"

    @property
    def name(self) -> str:
        return self.function.name

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "function": self.function.to_dict()}

    def to_responses_dict(self) -> Dict[str, Any]:
        """Flat function tool format used by the Responses API."""
        return {"type": self.type, **self.function.to_dict()}


@dataclass(frozen=True)
class ExecutableTool:
    """A tool schema paired with the coroutine that executes it."""
    tool: Tool
    execute: ToolExecutor = field(compare=False)

    @property
    def name(self) -> str:
        return self.tool.name


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation: tool name plus JSON-encoded arguments."""
    name: str
    arguments: str = "{}"

    @classmethod
    def from_request(cls, request: ToolCallRequest) -> "ToolCall":
        return cls(name=request.name, arguments=request.arguments)


class ToolCollection:
    """Named set of executable tools with a single dispatch point."""

    def __init__(self, executable_tools: List[ExecutableTool]):
        self.tools: List[Tool] = [t.tool for t in executable_tools]
        self.registry: Dict[str, ExecutableTool] = {t.name: t for t in executable_tools}

    @property
    def tools_for_chat_completion(self) -> List[Dict[str, Any]]:
        return [tool.to_dict() for tool in self.tools]

    @property
    def tools_for_responses_api(self) -> List[Dict[str, Any]]:
        return [tool.to_responses_dict() for tool in self.tools]

    def __len__(self) -> int:
        return len(self.registry)

    def __contains__(self, name: object) -> bool:
        return name in self.registry

    async def execute(self, tool_call: ToolCall, tracker: Optional[BudgetTracker] = None) -> Dict[str, Any]:
        """Decode a tool call's arguments and run the named tool.

        Args:
            tool_call: Tool name and JSON arguments
            tracker: Budget tracker shared with the rest of the exchange

        Returns:
            The tool's result envelope

        Raises:
            ToolNotFoundError: If the tool is not registered
            ToolExecutionError: If the arguments are malformed or the tool fails unexpectedly
            InsufficientBudgetError: If the tool's pre-flight check fails
            ProviderError: If the tool's provider call fails
        """
        tool = self.registry.get(tool_call.name)
        if tool is None:
            raise ToolNotFoundError(tool_call.name)

        try:
            arguments = json.loads(tool_call.arguments or "{}")
        except json.JSONDecodeError as e:
            raise ToolExecutionError(
                f"invalid arguments for '{tool_call.name}': {e}", tool_name=tool_call.name
            ) from e
        if not isinstance(arguments, dict):
            raise ToolExecutionError(
                f"arguments for '{tool_call.name}' must be a JSON object", tool_name=tool_call.name
            )

        logger.debug("Executing tool %s", tool_call.name)
        try:
            return await tool.execute(arguments, tracker)
        except AgenticBudgetError:
            raise
        except Exception as e:
            raise ToolExecutionError(str(e), tool_name=tool_call.name) from e


def create_tool_collection(executable_tools: List[ExecutableTool]) -> ToolCollection:
    """Create a tool collection from a list of executable tools."""
    return ToolCollection(executable_tools)
