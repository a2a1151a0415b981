"""Provider-neutral conversation types."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Optional, Sequence

__all__ = ["Role", "ToolCall", "Message", "Usage", "FinishReason", "ChatResponse"]


class Role(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True, slots=True)
class ToolCall:
    """A model-agnostic request emitted by the LLM to call a tool."""

    id: str
    function_name: str
    arguments_json: str = "{}"
    # Opaque vendor token that must be echoed back with the call (Gemini thought signatures)
    signature: Optional[bytes] = field(default=None, compare=False, repr=False)


@dataclass(frozen=True, slots=True)
class Message:
    """
    One entry of a conversation.

    ``tool_calls`` is only allowed on assistant messages and ``tool_call_id``
    is required on (and only allowed on) tool messages.
    """

    role: Role
    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: Optional[str] = None

    def __post_init__(self) -> None:
        # Accept plain strings for role, e.g. Message("user", "hi")
        object.__setattr__(self, "role", Role(self.role))
        object.__setattr__(self, "tool_calls", tuple(self.tool_calls))
        if self.content is None:
            object.__setattr__(self, "content", "")

        if self.tool_calls and self.role is not Role.ASSISTANT:
            raise ValueError(f"tool_calls are not allowed on a {self.role} message")
        if self.role is Role.TOOL:
            if not self.tool_call_id:
                raise ValueError("tool messages require a tool_call_id")
        elif self.tool_call_id is not None:
            raise ValueError(f"tool_call_id is not allowed on a {self.role} message")

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(Role.SYSTEM, content)

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(Role.USER, content)

    @classmethod
    def assistant(
        cls, content: str = "", tool_calls: Sequence[ToolCall] = ()
    ) -> "Message":
        return cls(Role.ASSISTANT, content, tuple(tool_calls))

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> "Message":
        return cls(Role.TOOL, content, tool_call_id=tool_call_id)


@dataclass(frozen=True, slots=True)
class Usage:
    """Token usage information as reported by the vendor."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class FinishReason(StrEnum):
    """Why the model stopped, normalized across vendors."""

    STOP = "stop"
    TOOL_CALLS = "tool_calls"
    LENGTH = "length"
    OTHER = "other"


@dataclass
class ChatResponse:
    """Unified response object for all LLM providers."""

    content: str
    tool_calls: list[ToolCall] = field(default_factory=list)
    finish_reason: FinishReason = FinishReason.STOP
    usage: Optional[Usage] = None
    raw: Any = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_message(self) -> Message:
        """The assistant message to append to the conversation."""
        return Message.assistant(self.content, self.tool_calls)
