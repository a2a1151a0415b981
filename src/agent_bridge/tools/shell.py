"""
The default local tool: shell command execution.

Command filtering (allowlists, read-only checks) belongs to whoever supplies
the ``CommandExecutor``; ``ShellExecutor`` runs what it is given.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Optional, Protocol, runtime_checkable

from agent_bridge.types import ParameterSpec, ToolDefinition

from .local import ToolRegistry

__all__ = [
    "CommandExecutor",
    "ShellExecutor",
    "SHELL_TOOL_NAME",
    "shell_command_tool",
    "default_registry",
]

logger = logging.getLogger(__name__)

SHELL_TOOL_NAME = "execute_shell_command"
DEFAULT_COMMAND_TIMEOUT = 30.0


@runtime_checkable
class CommandExecutor(Protocol):
    async def execute(self, command: str) -> str: ...


class ShellExecutor:
    """Run commands with ``sh -c``, returning combined stdout and stderr."""

    def __init__(
        self,
        work_dir: Optional[str] = None,
        *,
        timeout: float = DEFAULT_COMMAND_TIMEOUT,
        env: Optional[dict[str, str]] = None,
    ) -> None:
        self.work_dir = work_dir
        self.timeout = timeout
        self.env = env

    async def execute(self, command: str) -> str:
        if not command.strip():
            raise ValueError("empty command")

        logger.debug("Running shell command: %s", command)
        proc = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.STDOUT,
            cwd=self.work_dir,
            env=self.env,
        )
        try:
            output, _ = await asyncio.wait_for(proc.communicate(), self.timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise TimeoutError(
                f"command timed out after {self.timeout:g}s: {command}"
            ) from None

        text = output.decode(errors="replace")
        if proc.returncode:
            if text and not text.endswith("\n"):
                text += "\n"
            text += f"command exited with status {proc.returncode}"
        return text


def shell_command_tool(executor: CommandExecutor) -> ToolDefinition:
    """Wrap *executor* as the ``execute_shell_command`` tool."""

    async def handler(arguments_json: str) -> str:
        command = json.loads(arguments_json)["command"]
        if not isinstance(command, str):
            raise TypeError("command must be a string")
        return await executor.execute(command)

    return ToolDefinition.create(
        SHELL_TOOL_NAME,
        "Execute a shell command and return its combined output. "
        "Use it for diagnostic commands such as listing or describing resources.",
        {
            "command": ParameterSpec(
                "string",
                "The shell command to execute, e.g. 'kubectl get pods'",
            ),
        },
        required=["command"],
        handler=handler,
    )


def default_registry(executor: Optional[CommandExecutor] = None) -> ToolRegistry:
    """A registry holding only the shell command tool."""
    return ToolRegistry([shell_command_tool(executor or ShellExecutor())])
