"""
Dynamic tools built from a tool-definitions file.

A DynamicToolRegistry holds the loaded configurations and builds fresh
executable tools on request; nothing is pre-built at import time.
"""

from pathlib import Path
from typing import List, Optional, Union

from ..config.loader import ToolDefinitions, load_tool_definitions
from .base import ExecutableTool, ToolCollection, create_tool_collection
from .factory import ToolConfig, create_executable_tool, create_tools_from_configs
from .mcp import ExecutableMCPTool, MCPToolConfig, create_mcp_tool, create_mcp_tools_from_configs

DEFAULT_TOOL_DEFINITIONS = Path(__file__).resolve().parent.parent / "config" / "tool_definitions.yaml"


class DynamicToolRegistry:
    """Registry of tool and MCP tool configurations."""

    def __init__(self, definitions: ToolDefinitions):
        self._tool_configs: List[ToolConfig] = list(definitions.tools)
        self._mcp_configs: List[MCPToolConfig] = list(definitions.mcp_tools)

    @classmethod
    def from_file(cls, path: Union[str, Path] = DEFAULT_TOOL_DEFINITIONS) -> "DynamicToolRegistry":
        """Load a registry from a tool-definitions file (bundled defaults if omitted)."""
        return cls(load_tool_definitions(str(path)))

    def create_tools(self) -> List[ExecutableTool]:
        return create_tools_from_configs(self._tool_configs)

    def create_mcp_tools(self) -> List[ExecutableMCPTool]:
        return create_mcp_tools_from_configs(self._mcp_configs)

    def all_tools(self) -> List[Union[ExecutableTool, ExecutableMCPTool]]:
        """Both provider tools and MCP tools, provider tools first."""
        return [*self.create_tools(), *self.create_mcp_tools()]

    def create_tool_collection(self) -> ToolCollection:
        """Collection of the provider tools, ready to bind to an orchestrator."""
        return create_tool_collection(self.create_tools())

    def get_tool(self, name: str) -> Optional[Union[ExecutableTool, ExecutableMCPTool]]:
        """Get a tool by name, searching provider tools before MCP tools."""
        for config in self._tool_configs:
            if config.name == name:
                return create_executable_tool(config)
        return self.get_mcp_tool(name)

    def get_mcp_tool(self, name: str) -> Optional[ExecutableMCPTool]:
        for config in self._mcp_configs:
            if config.name == name:
                return create_mcp_tool(config)
        return None

    def available_tool_names(self) -> List[str]:
        """Names of all configured tools, provider tools first."""
        return [c.name for c in self._tool_configs] + self.available_mcp_tool_names()

    def available_mcp_tool_names(self) -> List[str]:
        return [c.name for c in self._mcp_configs]

    def add_tool_config(self, config: ToolConfig) -> ExecutableTool:
        """Register a tool configuration at runtime and build its tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        self._ensure_unique(config.name)
        self._tool_configs.append(config)
        return create_executable_tool(config)

    def add_mcp_tool_config(self, config: MCPToolConfig) -> ExecutableMCPTool:
        """Register an MCP tool configuration at runtime and build its tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        self._ensure_unique(config.name)
        self._mcp_configs.append(config)
        return create_mcp_tool(config)

    def _ensure_unique(self, name: str) -> None:
        if name in self.available_tool_names():
            raise ValueError(f"Tool '{name}' is already registered")


def create_default_tool_collection() -> ToolCollection:
    """Collection of the bundled provider tools (OpenAI and Anthropic)."""
    return DynamicToolRegistry.from_file().create_tool_collection()
