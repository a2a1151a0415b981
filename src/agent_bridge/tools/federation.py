"""
One tool namespace over the local registry and any number of MCP servers.

Remote tools are published as ``mcp_<serverId>_<toolName>``; a local tool
with the same exact name always wins.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Union

from agent_bridge.errors import (
    RemoteToolError,
    ServerUnreachableError,
    ToolError,
    ToolNotFoundError,
)
from agent_bridge.types import Message, ToolCall, ToolDefinition, ToolParameters

from .local import ToolRegistry, parse_tool_arguments
from .mcp import MCPServer, flatten_content

__all__ = ["LOCAL_OWNER", "REMOTE_PREFIX", "ToolEntry", "ToolFederation", "federated_name"]

logger = logging.getLogger(__name__)

LOCAL_OWNER = "local"
REMOTE_PREFIX = "mcp_"


def federated_name(server_id: str, tool_name: str) -> str:
    return f"{REMOTE_PREFIX}{server_id}_{tool_name}"


@dataclass(frozen=True)
class ToolEntry:
    """Where a published tool name is routed."""

    name: str
    owner: str
    original_name: str
    definition: ToolDefinition

    @property
    def is_local(self) -> bool:
        return self.owner == LOCAL_OWNER


class ToolFederation:
    """
    Routes tool calls to the local registry or the owning MCP server.

    The remote tool map is rebuilt by ``connect_all`` and swapped in as a
    read-only mapping, so readers never see a half-built namespace.
    """

    def __init__(
        self,
        local: Optional[ToolRegistry] = None,
        servers: Iterable[MCPServer] = (),
    ) -> None:
        self.local = local if local is not None else ToolRegistry()
        self._servers: dict[str, MCPServer] = {}
        for server in servers:
            if server.id in self._servers:
                raise ValueError(f"duplicate MCP server id '{server.id}'")
            self._servers[server.id] = server
        self._remote: Mapping[str, ToolEntry] = MappingProxyType({})

    @property
    def servers(self) -> Mapping[str, MCPServer]:
        return MappingProxyType(self._servers)

    @property
    def remote_tools(self) -> Mapping[str, ToolEntry]:
        return self._remote

    # --- lifecycle ---------------------------------------------------------
    async def connect_all(self) -> dict[str, ServerUnreachableError]:
        """
        Connect every server and publish the tools of those that answered.

        Servers are connected one after another from the calling task, since
        their transports must later be closed from the task that opened them.

        Returns:
            The servers that could not be reached, keyed by server id.
        """
        failures: dict[str, ServerUnreachableError] = {}
        entries: dict[str, ToolEntry] = {}

        for server_id, server in self._servers.items():
            try:
                await server.connect()
                tools = await server.list_tools()
            except Exception as exc:
                failures[server_id] = _as_unreachable(server_id, exc)
                logger.warning("MCP server %s unavailable: %s", server_id, exc)
                # A server that connected but cannot list its tools is dropped
                try:
                    await server.disconnect()
                except Exception as close_exc:
                    logger.debug("Error closing MCP server %s: %s", server_id, close_exc)
                continue

            for tool in tools:
                entry = self._wrap_remote_tool(server_id, tool)
                if entry is None:
                    continue
                if entry.name in self.local or entry.name in entries:
                    logger.warning(
                        "Skipping MCP tool %s from %s: name already taken", entry.name, server_id
                    )
                    continue
                entries[entry.name] = entry
            logger.debug("Loaded %d tools from MCP server %s", len(tools), server_id)

        self._remote = MappingProxyType(entries)
        return failures

    async def disconnect_all(self) -> dict[str, ServerUnreachableError]:
        failures: dict[str, ServerUnreachableError] = {}
        for server_id, server in self._servers.items():
            try:
                await server.disconnect()
            except Exception as exc:
                failures[server_id] = _as_unreachable(server_id, exc)
                logger.warning("Error disconnecting MCP server %s: %s", server_id, exc)
        self._remote = MappingProxyType({})
        return failures

    async def __aenter__(self) -> "ToolFederation":
        await self.connect_all()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.disconnect_all()

    def _wrap_remote_tool(self, server_id: str, tool) -> Optional[ToolEntry]:
        name = federated_name(server_id, tool.name)
        try:
            definition = ToolDefinition(
                name=name,
                description=f"[MCP:{server_id}] {tool.description or ''}".rstrip(),
                parameters=ToolParameters.from_json_schema(tool.inputSchema),
                handler=functools.partial(self._call_remote, server_id, tool.name),
            )
        except ToolError as exc:
            logger.warning("Skipping MCP tool %s from %s: %s", tool.name, server_id, exc)
            return None
        return ToolEntry(name, server_id, tool.name, definition)

    # --- queries -----------------------------------------------------------
    def get_all_tools(self) -> list[ToolDefinition]:
        """Local tools first, then federated tools."""
        return self.local.get_tools() + [entry.definition for entry in self._remote.values()]

    def entries(self) -> list[ToolEntry]:
        local = [
            ToolEntry(tool.name, LOCAL_OWNER, tool.name, tool) for tool in self.local.get_tools()
        ]
        return local + list(self._remote.values())

    def get_server_status(self) -> dict[str, bool]:
        return {server_id: server.is_connected for server_id, server in self._servers.items()}

    def resolve(self, name: str) -> Optional[tuple[str, str]]:
        """
        Split a federated tool name into ``(server_id, original_name)``.

        Published names resolve exactly. Otherwise the known server ids are
        tried longest first so that ids containing underscores still match.
        """
        entry = self._remote.get(name)
        if entry is not None:
            return entry.owner, entry.original_name
        if not name.startswith(REMOTE_PREFIX):
            return None

        rest = name[len(REMOTE_PREFIX):]
        for server_id in sorted(self._servers, key=len, reverse=True):
            prefix = f"{server_id}_"
            if rest.startswith(prefix) and len(rest) > len(prefix):
                return server_id, rest[len(prefix):]
        return None

    # --- execution ---------------------------------------------------------
    async def execute_tool(self, name: str, arguments_json: str) -> str:
        """
        Run the tool published as *name*.

        Raises:
            ToolNotFoundError: *name* is neither local nor published by a
                connected server.
            InvalidArgumentsError: the arguments are not a JSON object.
            ToolExecutionError: a local handler raised.
            RemoteToolError: the server flagged the result as an error.
            ServerUnreachableError: the owning server is not connected.
        """
        if name in self.local:
            return await self.local.execute(name, arguments_json)

        target = self.resolve(name)
        if target is None:
            raise ToolNotFoundError(f"tool '{name}' not found")
        server_id, original_name = target
        if name not in self._remote and self._servers[server_id].is_connected:
            # The published map is authoritative for a live server
            raise ToolNotFoundError(f"tool '{name}' not found")
        return await self._call_remote(server_id, original_name, arguments_json)

    async def _call_remote(self, server_id: str, tool_name: str, arguments_json: str) -> str:
        arguments = parse_tool_arguments(tool_name, arguments_json)
        server = self._servers[server_id]
        if not server.is_connected:
            raise ServerUnreachableError(server_id)

        logger.debug("Calling MCP tool %s on %s", tool_name, server_id)
        result = await server.call_tool(tool_name, arguments)
        text = flatten_content(result.content)
        if result.isError:
            raise RemoteToolError(text, server_id=server_id, tool_name=tool_name)
        return text

    async def execute_tool_call(self, call: ToolCall) -> Message:
        """Run *call* and return its ``tool`` message; failures become ``Error: ...`` text."""
        try:
            content = await self.execute_tool(call.function_name, call.arguments_json)
        except ToolError as exc:
            logger.warning("Tool %s failed: %s", call.function_name, exc)
            content = f"Error: {exc}"
        return Message.tool(call.id, content)


def _as_unreachable(
    server_id: str, exc: Union[Exception, ServerUnreachableError]
) -> ServerUnreachableError:
    if isinstance(exc, ServerUnreachableError):
        return exc
    return ServerUnreachableError(server_id, exc)
