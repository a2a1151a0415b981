"""Test doubles for LLMs and MCP servers."""

from typing import Any, Optional, Sequence
from unittest.mock import AsyncMock

from mcp.types import CallToolResult, TextContent, Tool

from agent_bridge.errors import ServerUnreachableError
from agent_bridge.types import ChatResponse, Message


class FakeLLM:
    """Token accounting and chat without a vendor behind it."""

    def __init__(self, tokens: int = 0, context_length: int = 1000, reply: str = "summary") -> None:
        self.tokens = tokens
        self.context_length = context_length
        self.chat = AsyncMock(return_value=ChatResponse(content=reply))
        self.chat_with_tools = AsyncMock()

    def estimate_tokens(self, messages: Sequence[Message]) -> int:
        return self.tokens

    def get_context_length(self) -> int:
        return self.context_length


class FakeServer:
    """Stands in for MCPServer: same surface, scripted results."""

    def __init__(
        self,
        server_id: str,
        tools: Sequence[Tool] = (),
        *,
        fail_connect: bool = False,
        fail_list: bool = False,
    ) -> None:
        self.id = server_id
        self.tools = list(tools)
        self.fail_connect = fail_connect
        self.fail_list = fail_list
        self.is_connected = False
        self.results: dict[str, CallToolResult] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    async def connect(self) -> None:
        if self.fail_connect:
            raise ServerUnreachableError(self.id, ConnectionRefusedError("refused"))
        self.is_connected = True

    async def disconnect(self) -> None:
        self.is_connected = False

    async def list_tools(self) -> list[Tool]:
        if self.fail_list:
            raise ServerUnreachableError(self.id, BrokenPipeError("closed"))
        return list(self.tools)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> CallToolResult:
        self.calls.append((name, arguments))
        default = CallToolResult(content=[TextContent(type="text", text=f"{self.id}:{name}")])
        return self.results.get(name, default)


def mcp_tool(name: str, description: str = "", schema: Optional[dict] = None) -> Tool:
    return Tool(
        name=name,
        description=description,
        inputSchema=schema or {"type": "object", "properties": {}},
    )


class RecordingExecutor:
    """CommandExecutor that records commands instead of running them."""

    def __init__(self, output: str = "ok") -> None:
        self.output = output
        self.commands: list[str] = []

    async def execute(self, command: str) -> str:
        self.commands.append(command)
        return self.output
