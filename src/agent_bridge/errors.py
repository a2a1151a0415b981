"""
Error taxonomy for agent-bridge.

Noisy provider tracebacks are translated into a unified `UpstreamError`
while preserving the original exception for full tracebacks.
"""

from __future__ import annotations

import logging
from typing import Final, Optional, Type

import anthropic
import openai
from google.genai import errors as genai_errors

__all__: tuple[str, ...] = (
    "AgentBridgeError",
    "NotConfiguredError",
    "UpstreamError",
    "ProtocolMismatchError",
    "UnsupportedOperationError",
    "InvalidSchemaError",
    "ConversationError",
    "SummarizationError",
    "ToolError",
    "ToolNotFoundError",
    "InvalidArgumentsError",
    "ToolExecutionError",
    "RemoteToolError",
    "ServerUnreachableError",
    "classify_error",
)


class AgentBridgeError(RuntimeError):
    """Base class for every error raised by agent-bridge."""


class NotConfiguredError(AgentBridgeError):
    """Missing/invalid credential or unknown provider."""


class UpstreamError(AgentBridgeError):
    """Public bridge-level wrapper around a vendor API or transport failure.

    Attributes:
        original_exc: The underlying provider exception.
    """

    original_exc: Exception

    def __init__(self, message: str, original_exc: Exception) -> None:
        super().__init__(message)
        self.original_exc = original_exc
        self.__cause__ = original_exc


class ProtocolMismatchError(AgentBridgeError):
    """An adapter could not translate a shape it was given or received."""


class UnsupportedOperationError(AgentBridgeError):
    """The selected provider does not implement the requested operation."""


class InvalidSchemaError(AgentBridgeError, ValueError):
    """A tool definition has an invalid parameter schema."""


class ConversationError(AgentBridgeError, ValueError):
    """A message sequence violates the conversation invariants."""


class SummarizationError(AgentBridgeError):
    """The compaction call failed; the original history is untouched."""


class ToolError(AgentBridgeError):
    """Base class for failures that are reported back to the model."""


class ToolNotFoundError(ToolError):
    pass


class InvalidArgumentsError(ToolError):
    pass


class ToolExecutionError(ToolError):
    """A local tool handler raised."""

    def __init__(self, tool_name: str, cause: BaseException) -> None:
        super().__init__(f"tool '{tool_name}' failed: {cause}")
        self.tool_name = tool_name
        self.cause = cause
        self.__cause__ = cause


class RemoteToolError(ToolError):
    """A federated tool reported ``isError``; the message is its output."""

    def __init__(self, message: str, *, server_id: str = "", tool_name: str = "") -> None:
        super().__init__(message)
        self.server_id = server_id
        self.tool_name = tool_name


class ServerUnreachableError(ToolError):
    """One external tool server could not be reached."""

    def __init__(self, server_id: str, cause: Optional[BaseException] = None) -> None:
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"MCP server '{server_id}' is unreachable{detail}")
        self.server_id = server_id
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause


API_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIError,
    anthropic.APIError,
    genai_errors.APIError,
)

CONN_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.APIConnectionError,
    anthropic.APIConnectionError,
    TimeoutError,
    ConnectionError,
)

RATE_LIMIT_ERRORS: Final[tuple[Type[Exception], ...]] = (
    openai.RateLimitError,
    anthropic.RateLimitError,
)


def _is_rate_limited(exc: Exception) -> bool:
    if isinstance(exc, RATE_LIMIT_ERRORS):
        return True
    # google-genai has no dedicated subclass for 429s
    return isinstance(exc, genai_errors.APIError) and exc.code == 429


def classify_error(
    exc: Exception,
    logger: Optional[logging.Logger] = None,
) -> UpstreamError:
    """Wrap an SDK exception in UpstreamError with a friendly, concise message."""
    log = logger or logging.getLogger("agent_bridge.errors")

    if _is_rate_limited(exc):
        msg = "Rate-limit exceeded, please retry later"
    elif isinstance(exc, CONN_ERRORS):
        msg = "Connection problem, unable to reach the LLM provider"
    elif isinstance(exc, API_ERRORS):
        status = getattr(exc, "status_code", None) or getattr(exc, "code", "unknown")
        msg = f"Provider reported an error ({status})"
    else:
        msg = exc.__class__.__name__

    log.warning("Wrapping provider exception", extra={"exc": exc})
    return UpstreamError(f"{msg}: {exc}", exc)
