"""Local tools, MCP servers and the federated namespace over both."""

from .local import ToolRegistry
from .shell import CommandExecutor, ShellExecutor, default_registry, shell_command_tool
from .mcp import MCPServer, MCPServerConfig, create_servers, flatten_content
from .federation import ToolEntry, ToolFederation, federated_name

__all__ = [
    "ToolRegistry",
    "CommandExecutor",
    "ShellExecutor",
    "default_registry",
    "shell_command_tool",
    "MCPServer",
    "MCPServerConfig",
    "create_servers",
    "flatten_content",
    "ToolEntry",
    "ToolFederation",
    "federated_name",
]
