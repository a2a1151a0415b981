"""Tests for MCPServer against a real stdio server process."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from mcp.shared.exceptions import McpError
from mcp.types import ErrorData

from agent_bridge.errors import RemoteToolError, ServerUnreachableError
from agent_bridge.tools import MCPServer, MCPServerConfig, ToolFederation, flatten_content

ECHO_SERVER = Path(__file__).with_name("echo_server.py")


def echo_config(server_id: str = "echo") -> MCPServerConfig:
    return MCPServerConfig(
        server_id=server_id,
        command=sys.executable,
        args=[str(ECHO_SERVER)],
        timeout=15.0,
    )


class TestMCPServer:
    """Each test opens and closes its own connection from the test task."""

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self):
        server = MCPServer(echo_config())
        try:
            await server.connect()
            await server.connect()

            assert server.is_connected
            assert server.server_info.name == "echo"
            tools = await server.list_tools()
            assert sorted(tool.name for tool in tools) == ["explode", "search"]
        finally:
            await server.disconnect()

    @pytest.mark.asyncio
    async def test_call_tool(self):
        server = MCPServer(echo_config())
        try:
            await server.connect()
            result = await server.call_tool("search", {"query": "pods"})
        finally:
            await server.disconnect()

        assert not result.isError
        assert flatten_content(result.content) == "found pods"

    @pytest.mark.asyncio
    async def test_unknown_tool_is_reported_by_server(self):
        server = MCPServer(echo_config())
        try:
            await server.connect()
            result = await server.call_tool("nope", {})
        finally:
            await server.disconnect()

        assert result.isError
        assert "Unknown tool: nope" in flatten_content(result.content)

    @pytest.mark.asyncio
    async def test_disconnect_is_idempotent(self):
        server = MCPServer(echo_config())
        await server.connect()

        await server.disconnect()
        await server.disconnect()

        assert not server.is_connected

    @pytest.mark.asyncio
    async def test_call_after_disconnect(self):
        server = MCPServer(echo_config())
        await server.connect()
        await server.disconnect()

        with pytest.raises(ServerUnreachableError) as excinfo:
            await server.call_tool("search", {"query": "x"})

        assert excinfo.value.server_id == "echo"

    @pytest.mark.asyncio
    async def test_missing_command(self):
        server = MCPServer(MCPServerConfig("missing", command="/nonexistent/bin/mcp-server"))

        with pytest.raises(ServerUnreachableError) as excinfo:
            await server.connect()

        assert excinfo.value.server_id == "missing"
        assert not server.is_connected
        await server.disconnect()


class TestSessionErrors:
    """Error mapping of call_tool, with the session replaced by a mock."""

    @pytest.fixture
    def server(self):
        server = MCPServer(echo_config())
        server._session = AsyncMock()
        return server

    @pytest.mark.asyncio
    async def test_protocol_error(self, server):
        server._session.call_tool.side_effect = McpError(
            ErrorData(code=-32602, message="Invalid params")
        )

        with pytest.raises(RemoteToolError) as excinfo:
            await server.call_tool("search", {})

        assert str(excinfo.value) == "Invalid params"
        assert excinfo.value.tool_name == "search"

    @pytest.mark.asyncio
    async def test_transport_error(self, server):
        server._session.call_tool.side_effect = BrokenPipeError("pipe closed")

        with pytest.raises(ServerUnreachableError):
            await server.call_tool("search", {})

    @pytest.mark.asyncio
    async def test_listing_error(self, server):
        server._session.list_tools.side_effect = ConnectionResetError("reset")

        with pytest.raises(ServerUnreachableError):
            await server.list_tools()


class TestFederationOverStdio:
    @pytest.mark.asyncio
    async def test_partial_federation(self):
        federation = ToolFederation(
            servers=[
                MCPServer(echo_config("good")),
                MCPServer(MCPServerConfig("missing", command="/nonexistent/bin/mcp-server")),
            ]
        )
        try:
            failures = await federation.connect_all()

            assert list(failures) == ["missing"]
            assert federation.get_server_status() == {"good": True, "missing": False}
            assert await federation.execute_tool("mcp_good_search", '{"query": "x"}') == "found x"
            with pytest.raises(RemoteToolError) as excinfo:
                await federation.execute_tool("mcp_good_explode", '{"reason": "boom"}')
            assert "boom" in str(excinfo.value)
        finally:
            await federation.disconnect_all()

        assert federation.get_server_status() == {"good": False, "missing": False}
