"""
Provider-neutral request and response types.

Every chat model adapter converts its SDK's response into a ProviderResponse
so the execution guard and orchestrator never touch SDK objects directly.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

from ..core.token_counter import TokenUsage


@dataclass(frozen=True)
class ToolCallRequest:
    """A tool call requested by a model.

    ``arguments`` is the raw JSON string produced by the model; it is
    decoded by the tool collection, not here.
    """
    name: str
    arguments: str
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "arguments": self.arguments}


@dataclass
class ProviderResponse:
    """Normalized result of one provider call."""
    content: str
    model: str
    usage: Optional[TokenUsage] = None  # None when the provider reported no usage
    tool_calls: List[ToolCallRequest] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)


class ChatModel(Protocol):
    """Async chat model the orchestrator and tools invoke."""

    model_name: str

    async def invoke(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        max_tokens: Optional[int] = None,
    ) -> ProviderResponse:
        ...
