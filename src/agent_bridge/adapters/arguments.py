"""Shared handling of serialized tool-call arguments."""

from __future__ import annotations

import json
from typing import Any

from agent_bridge.errors import ProtocolMismatchError
from agent_bridge.types import ToolCall


def parse_arguments(call: ToolCall) -> dict[str, Any]:
    """Parse ``arguments_json`` into the object vendors expect as structured input."""
    text = call.arguments_json.strip() or "{}"
    try:
        arguments = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProtocolMismatchError(
            f"tool call {call.id!r} ({call.function_name}) has malformed arguments: {exc}"
        ) from exc
    if not isinstance(arguments, dict):
        raise ProtocolMismatchError(
            f"tool call {call.id!r} ({call.function_name}) arguments must be a JSON object"
        )
    return arguments
