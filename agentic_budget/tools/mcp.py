"""
MCP tool passthrough.

MCP tools are not executed locally. They are handed to the OpenAI Responses
API, which connects to the MCP server and runs the tool itself.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..core.budget import BudgetTracker
from ..core.guardrails import attach_budget_summary

APPROVAL_MODES = ("never", "always", "prompt")
AUTH_TYPES = ("bearer", "api_key")

MCP_DIRECT_EXECUTION_ERROR = "MCP tools must be used with OpenAI Responses API"


@dataclass(frozen=True)
class MCPAuthConfig:
    """Where to find an MCP server credential and how to send it."""
    type: str
    header_name: str
    env_var: str

    def __post_init__(self):
        """Validate the auth type."""
        if self.type not in AUTH_TYPES:
            raise ValueError(f"auth type must be one of: {list(AUTH_TYPES)}")

    def resolve_headers(self, environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Build request headers from the environment; empty if the variable is unset."""
        environ = os.environ if environ is None else environ
        value = environ.get(self.env_var)
        if not value:
            return {}
        if self.type == "bearer":
            value = f"Bearer {value}"
        return {self.header_name: value}


@dataclass(frozen=True)
class MCPToolConfig:
    """Declarative configuration for an MCP server tool."""
    name: str
    description: str
    server_url: str
    server_label: str
    allowed_tools: Tuple[str, ...]
    require_approval: str = "never"
    auth: Optional[MCPAuthConfig] = None

    def __post_init__(self):
        """Validate required MCP fields."""
        if not self.name or not self.name.strip():
            raise ValueError("MCP tool name is required and cannot be empty")
        if not self.server_url:
            raise ValueError(f"server_url is required for MCP tool '{self.name}'")
        if self.require_approval not in APPROVAL_MODES:
            raise ValueError(f"require_approval must be one of: {list(APPROVAL_MODES)}")


@dataclass
class ExecutableMCPTool:
    """An MCP server exposed as a Responses API tool.

    ``headers`` may be set after creation, e.g. to inject credentials.
    """
    name: str
    description: str
    server_url: str
    server_label: str
    allowed_tools: List[str]
    require_approval: str = "never"
    headers: Dict[str, str] = field(default_factory=dict)
    type: str = "mcp"

    def to_responses_tool(self) -> Dict[str, Any]:
        tool: Dict[str, Any] = {
            "type": self.type,
            "server_label": self.server_label,
            "server_url": self.server_url,
            "allowed_tools": list(self.allowed_tools),
            "require_approval": self.require_approval,
        }
        if self.headers:
            tool["headers"] = dict(self.headers)
        return tool

    async def execute(self, params: Dict[str, Any], tracker: Optional[BudgetTracker] = None) -> Dict[str, Any]:
        """MCP tools cannot run locally; report how to use them instead."""
        envelope = {
            "success": False,
            "error": MCP_DIRECT_EXECUTION_ERROR,
            "response": (
                f"MCP tool '{self.name}' cannot be executed directly. "
                "Please use this tool through create_ai_with_mcp_tools()"
            ),
        }
        return attach_budget_summary(envelope, tracker)


def create_mcp_tool(config: MCPToolConfig, environ: Optional[Mapping[str, str]] = None) -> ExecutableMCPTool:
    """Create an MCP tool, resolving auth headers from the environment."""
    headers = config.auth.resolve_headers(environ) if config.auth is not None else {}
    return ExecutableMCPTool(
        name=config.name,
        description=config.description,
        server_url=config.server_url,
        server_label=config.server_label,
        allowed_tools=list(config.allowed_tools),
        require_approval=config.require_approval,
        headers=headers,
    )


def create_mcp_tools_from_configs(configs: List[MCPToolConfig]) -> List[ExecutableMCPTool]:
    """Create multiple MCP tools from configurations."""
    return [create_mcp_tool(config) for config in configs]
