"""Checks for the tool-call pairing rules of a conversation."""

from __future__ import annotations

from typing import Sequence

from agent_bridge.errors import ConversationError
from agent_bridge.types.chat import Message, Role

__all__ = ["Conversation", "validate_conversation", "unanswered_tool_calls", "is_settled"]

Conversation = Sequence[Message]


def validate_conversation(messages: Conversation) -> None:
    """
    Raise ConversationError if *messages* breaks an ordering invariant.

    - a system message may only appear first
    - every tool message answers an earlier, still unanswered tool call
    """
    issued: set[str] = set()
    answered: set[str] = set()

    for index, msg in enumerate(messages):
        if msg.role is Role.SYSTEM and index != 0:
            raise ConversationError(f"system message at position {index}; only the first may be system")

        if msg.role is Role.ASSISTANT:
            for call in msg.tool_calls:
                if call.id in issued:
                    raise ConversationError(f"duplicate tool call id {call.id!r}")
                issued.add(call.id)

        elif msg.role is Role.TOOL:
            call_id = msg.tool_call_id
            if call_id not in issued:
                raise ConversationError(f"tool message answers unknown call {call_id!r}")
            if call_id in answered:
                raise ConversationError(f"tool call {call_id!r} answered twice")
            answered.add(call_id)


def unanswered_tool_calls(messages: Conversation) -> list[str]:
    """Ids of tool calls that have no tool message yet, in issue order."""
    pending: dict[str, None] = {}
    for msg in messages:
        for call in msg.tool_calls:
            pending[call.id] = None
        if msg.role is Role.TOOL:
            pending.pop(msg.tool_call_id, None)
    return list(pending)


def is_settled(messages: Conversation) -> bool:
    return not unanswered_tool_calls(messages)
