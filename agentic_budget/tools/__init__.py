"""
Tools for agentic_budget.

Provider-backed function tools, MCP passthrough tools, and the registry
that builds them from configuration.
"""

from .base import (
    ExecutableTool,
    FunctionDefinition,
    Tool,
    ToolCall,
    ToolCollection,
    create_tool_collection,
)
from .factory import ToolConfig, create_executable_tool, create_tool_schema, create_tools_from_configs
from .mcp import ExecutableMCPTool, MCPAuthConfig, MCPToolConfig, create_mcp_tool, create_mcp_tools_from_configs

__all__ = [
    "ExecutableMCPTool",
    "ExecutableTool",
    "FunctionDefinition",
    "MCPAuthConfig",
    "MCPToolConfig",
    "Tool",
    "ToolCall",
    "ToolCollection",
    "ToolConfig",
    "create_executable_tool",
    "create_mcp_tool",
    "create_mcp_tools_from_configs",
    "create_tool_collection",
    "create_tool_schema",
    "create_tools_from_configs",
]
