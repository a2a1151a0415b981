"""
Connections to external MCP tool servers.

Each ``MCPServer`` owns one ``ClientSession`` whose transport context managers
live in an ``AsyncExitStack`` for as long as the server is connected.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Mapping, Optional, Sequence

import httpx
from mcp import ClientSession, StdioServerParameters
from mcp.client.sse import sse_client
from mcp.client.stdio import stdio_client
from mcp.client.streamable_http import streamable_http_client
from mcp.shared.exceptions import McpError
from mcp.types import CallToolResult, Implementation, Tool

from agent_bridge.errors import RemoteToolError, ServerUnreachableError

__all__ = [
    "TRANSPORTS",
    "MCPServerConfig",
    "MCPServer",
    "create_servers",
    "flatten_content",
]

logger = logging.getLogger(__name__)

TRANSPORTS = frozenset({"stdio", "sse", "streamable-http"})
_TRANSPORT_ALIASES = {"http": "streamable-http", "streamable_http": "streamable-http"}


@dataclass
class MCPServerConfig:
    """How to reach one MCP server."""

    server_id: str
    transport: str = "stdio"
    command: Optional[str] = None
    args: list[str] = field(default_factory=list)
    env: Optional[dict[str, str]] = None
    cwd: Optional[str] = None
    url: Optional[str] = None
    headers: dict[str, str] = field(default_factory=dict)
    enabled: bool = True
    timeout: float = 30.0

    def __post_init__(self) -> None:
        if not self.server_id:
            raise ValueError("MCP server id must not be empty")
        self.transport = _TRANSPORT_ALIASES.get(self.transport, self.transport)
        if self.transport not in TRANSPORTS:
            raise ValueError(
                f"MCP server '{self.server_id}': unknown transport {self.transport!r}"
            )
        if self.transport == "stdio" and not self.command:
            raise ValueError(
                f"MCP server '{self.server_id}': command is required for stdio transport"
            )
        if self.transport != "stdio" and not self.url:
            raise ValueError(
                f"MCP server '{self.server_id}': url is required for {self.transport} transport"
            )

    @classmethod
    def from_dict(cls, server_id: str, data: Mapping[str, Any]) -> "MCPServerConfig":
        """
        Build a config from the driver's per-server mapping.

        ``base_url`` is accepted as an alias of ``url``. Without an explicit
        ``transport`` a server with a ``url`` and no ``command`` is assumed to
        speak streamable HTTP.
        """
        url = data.get("url") or data.get("base_url")
        transport = data.get("transport") or (
            "streamable-http" if url and not data.get("command") else "stdio"
        )
        env = data.get("env")
        return cls(
            server_id=server_id,
            transport=str(transport).lower(),
            command=data.get("command"),
            args=[str(a) for a in data.get("args") or ()],
            env={str(k): str(v) for k, v in env.items()} if env else None,
            cwd=data.get("cwd"),
            url=url,
            headers=dict(data.get("headers") or {}),
            enabled=bool(data.get("enabled", True)),
            timeout=float(data.get("timeout", 30.0)),
        )


def create_servers(configs: Mapping[str, Mapping[str, Any]]) -> list["MCPServer"]:
    """One ``MCPServer`` per enabled entry of *configs*."""
    servers = []
    for server_id, data in configs.items():
        config = MCPServerConfig.from_dict(server_id, data)
        if config.enabled:
            servers.append(MCPServer(config))
        else:
            logger.debug("Skipping disabled MCP server %s", server_id)
    return servers


def flatten_content(blocks: Optional[Sequence[Any]]) -> str:
    """Render MCP content blocks as text, one block per line."""
    parts: list[str] = []
    for block in blocks or ():
        kind = getattr(block, "type", None)
        if kind == "text":
            parts.append(block.text)
        elif kind in ("image", "audio"):
            parts.append(block.data)
        elif kind == "resource":
            resource = block.resource
            text = getattr(resource, "text", None)
            parts.append(text if text is not None else getattr(resource, "blob", ""))
        elif kind == "resource_link":
            parts.append(str(block.uri))
        else:
            parts.append(f"[{kind} content]")
    return "\n".join(parts)


class MCPServer:
    """A single external tool server."""

    def __init__(self, config: MCPServerConfig) -> None:
        self.config = config
        self._session: Optional[ClientSession] = None
        self._stack: Optional[AsyncExitStack] = None
        self._server_info: Optional[Implementation] = None
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return (
            f"MCPServer(id={self.id!r}, transport={self.config.transport!r}, "
            f"connected={self.is_connected})"
        )

    @property
    def id(self) -> str:
        return self.config.server_id

    @property
    def is_connected(self) -> bool:
        return self._session is not None

    @property
    def server_info(self) -> Optional[Implementation]:
        """Name and version reported by the server during ``initialize``."""
        return self._server_info

    async def connect(self) -> None:
        """Open the transport and run the ``initialize`` handshake."""
        async with self._lock:
            if self._session is not None:
                return

            stack = AsyncExitStack()
            try:
                read_stream, write_stream = await self._open_transport(stack)
                session = await stack.enter_async_context(
                    ClientSession(
                        read_stream,
                        write_stream,
                        read_timeout_seconds=timedelta(seconds=self.config.timeout),
                    )
                )
                result = await session.initialize()
            except Exception as exc:
                await stack.aclose()
                raise ServerUnreachableError(self.id, exc) from exc

            self._stack = stack
            self._session = session
            self._server_info = result.serverInfo
            logger.info(
                "Connected to MCP server %s (%s %s)",
                self.id,
                result.serverInfo.name,
                result.serverInfo.version,
            )

    async def _open_transport(self, stack: AsyncExitStack) -> tuple[Any, Any]:
        config = self.config
        if config.transport == "stdio":
            params = StdioServerParameters(
                command=config.command,
                args=config.args,
                env=config.env,
                cwd=config.cwd,
            )
            return await stack.enter_async_context(stdio_client(params))

        if config.transport == "sse":
            return await stack.enter_async_context(
                sse_client(config.url, headers=config.headers or None, timeout=config.timeout)
            )

        http_client = await stack.enter_async_context(
            httpx.AsyncClient(headers=config.headers, timeout=httpx.Timeout(config.timeout))
        )
        read_stream, write_stream, _ = await stack.enter_async_context(
            streamable_http_client(url=config.url, http_client=http_client)
        )
        return read_stream, write_stream

    async def disconnect(self) -> None:
        """Close the session and its transport. Safe to call multiple times."""
        async with self._lock:
            stack, self._stack = self._stack, None
            self._session = None
            if stack is not None:
                await stack.aclose()
                logger.info("Disconnected from MCP server %s", self.id)

    async def list_tools(self) -> list[Tool]:
        session = self._require_session()
        try:
            result = await session.list_tools()
        except Exception as exc:
            raise ServerUnreachableError(self.id, exc) from exc
        return list(result.tools)

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> CallToolResult:
        """
        Forward a call to the server.

        Protocol-level rejections (``McpError``) surface as RemoteToolError;
        any other failure means the transport is gone.
        """
        session = self._require_session()
        try:
            return await session.call_tool(name, arguments)
        except McpError as exc:
            raise RemoteToolError(str(exc), server_id=self.id, tool_name=name) from exc
        except Exception as exc:
            raise ServerUnreachableError(self.id, exc) from exc

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise ServerUnreachableError(self.id)
        return self._session
