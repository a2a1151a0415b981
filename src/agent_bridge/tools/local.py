"""Registry of tools that run in-process."""

from __future__ import annotations

import inspect
import json
import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional

from agent_bridge.errors import (
    InvalidArgumentsError,
    ToolExecutionError,
    ToolNotFoundError,
)
from agent_bridge.types import ToolDefinition

__all__ = ["ToolRegistry", "parse_tool_arguments"]

logger = logging.getLogger(__name__)


def parse_tool_arguments(tool_name: str, arguments_json: str) -> dict[str, Any]:
    """Decode the argument payload of a call to *tool_name*."""
    try:
        arguments = json.loads(arguments_json or "{}")
    except json.JSONDecodeError as exc:
        raise InvalidArgumentsError(
            f"invalid JSON arguments for tool '{tool_name}': {exc}"
        ) from exc
    if not isinstance(arguments, dict):
        raise InvalidArgumentsError(
            f"arguments for tool '{tool_name}' must be a JSON object, "
            f"got {type(arguments).__name__}"
        )
    return arguments


class ToolRegistry:
    """Local tools keyed by name, in registration order."""

    def __init__(self, tools: Optional[Iterable[ToolDefinition]] = None) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        for tool in tools or ():
            self.register(tool)

    def register(self, tool: ToolDefinition) -> None:
        if tool.handler is None:
            raise ValueError(f"local tool '{tool.name}' has no handler")
        if tool.name in self._tools:
            raise ValueError(f"tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    @property
    def tools(self) -> Mapping[str, ToolDefinition]:
        return MappingProxyType(self._tools)

    def get_tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    async def execute(self, name: str, arguments_json: str) -> str:
        """
        Run local tool *name* with the JSON-encoded arguments.

        Raises:
            ToolNotFoundError: no tool is registered under *name*.
            InvalidArgumentsError: the payload is not a JSON object or misses
                a required property.
            ToolExecutionError: the handler raised.
        """
        tool = self._tools.get(name)
        if tool is None:
            raise ToolNotFoundError(f"tool '{name}' not found")

        arguments = parse_tool_arguments(name, arguments_json)
        missing = [key for key in tool.parameters.required if key not in arguments]
        if missing:
            raise InvalidArgumentsError(
                f"tool '{name}' is missing required arguments: {', '.join(missing)}"
            )

        logger.debug("Executing local tool %s", name)
        try:
            result = tool.handler(arguments_json)
            if inspect.isawaitable(result):
                result = await result
        except Exception as exc:
            raise ToolExecutionError(name, exc) from exc
        return result if isinstance(result, str) else str(result)
