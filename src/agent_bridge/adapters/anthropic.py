"""Anthropic adapter for pure request/response transformations."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Optional, Sequence

from anthropic.types import Message as AnthropicMessage

from agent_bridge.adapters.arguments import parse_arguments
from agent_bridge.errors import ProtocolMismatchError
from agent_bridge.types import (
    ChatResponse,
    FinishReason,
    Message,
    Role,
    ToolCall,
    ToolDefinition,
    ToolParameters,
    Usage,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096

_FINISH_REASONS = {
    "end_turn": FinishReason.STOP,
    "stop_sequence": FinishReason.STOP,
    "tool_use": FinishReason.TOOL_CALLS,
    "max_tokens": FinishReason.LENGTH,
}

_TOOL_CHOICES = {
    "auto": {"type": "auto"},
    "required": {"type": "any"},
    "any": {"type": "any"},
    "none": {"type": "none"},
}

# Standard params with no Anthropic counterpart
_UNSUPPORTED_PARAMS = ("frequency_penalty", "presence_penalty", "seed")


class AnthropicRequestAdapter:
    """Adapter for converting between the conversation model and Anthropic format."""

    def build_messages(
        self, messages: Sequence[Message]
    ) -> tuple[Optional[str], list[dict[str, Any]]]:
        """
        Split out the system prompt and convert the rest.

        Tool results are user messages made of ``tool_result`` blocks;
        consecutive tool messages share one user message.
        """
        system_parts: list[str] = []
        anthropic_messages: list[dict[str, Any]] = []

        for msg in messages:
            if msg.role is Role.SYSTEM:
                system_parts.append(msg.content)
                continue

            if msg.role is Role.TOOL:
                block = {
                    "type": "tool_result",
                    "tool_use_id": msg.tool_call_id,
                    "content": msg.content,
                }
                previous = anthropic_messages[-1] if anthropic_messages else None
                if previous is not None and _is_tool_result_message(previous):
                    previous["content"].append(block)
                else:
                    anthropic_messages.append({"role": "user", "content": [block]})
                continue

            if msg.role is Role.ASSISTANT and msg.tool_calls:
                blocks: list[dict[str, Any]] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                for call in msg.tool_calls:
                    blocks.append(
                        {
                            "type": "tool_use",
                            "id": call.id,
                            "name": call.function_name,
                            "input": parse_arguments(call),
                        }
                    )
                anthropic_messages.append({"role": "assistant", "content": blocks})
                continue

            anthropic_messages.append({"role": msg.role.value, "content": msg.content})

        system_prompt = "\n\n".join(system_parts) if system_parts else None
        return system_prompt, anthropic_messages

    def build_tools(self, tools: Sequence[ToolDefinition]) -> list[dict[str, Any]]:
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.json_schema,
            }
            for tool in tools
        ]

    def build_params(self, params: dict[str, Any], *, with_tools: bool) -> dict[str, Any]:
        """Convert normalized params to Anthropic API parameters."""
        base_params = dict(params)
        extras = base_params.pop("extra", {})

        # Anthropic requires max_tokens
        base_params.setdefault("max_tokens", DEFAULT_MAX_TOKENS)

        if "stop" in base_params:
            stop = base_params.pop("stop")
            base_params["stop_sequences"] = stop if isinstance(stop, list) else [stop]

        if "user" in base_params:
            base_params["metadata"] = {"user_id": base_params.pop("user")}

        tool_choice = base_params.pop("tool_choice", None)
        parallel = base_params.pop("parallel_tool_calls", None)
        if with_tools and (tool_choice is not None or parallel is False):
            if isinstance(tool_choice, dict):
                choice = dict(tool_choice)
            else:
                choice = dict(_TOOL_CHOICES.get(tool_choice or "auto", {"type": "auto"}))
            if parallel is False and choice["type"] != "none":
                choice["disable_parallel_tool_use"] = True
            base_params["tool_choice"] = choice

        for key in _UNSUPPORTED_PARAMS:
            if base_params.pop(key, None) is not None:
                logger.debug("Dropping %s: not supported by Anthropic", key)

        for k, v in extras.items():
            base_params.setdefault(k, v)

        return base_params

    def to_provider(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
        tools: Optional[Sequence[ToolDefinition]] = None,
    ) -> dict[str, Any]:
        """Convert messages, params and tools to Anthropic request kwargs."""
        system_prompt, anthropic_messages = self.build_messages(messages)
        request: dict[str, Any] = {
            "messages": anthropic_messages,
            **self.build_params(params, with_tools=bool(tools)),
        }
        if system_prompt is not None:
            request["system"] = system_prompt
        if tools:
            request["tools"] = self.build_tools(tools)
        return request

    def from_provider(self, raw: AnthropicMessage) -> ChatResponse:
        """Convert an Anthropic response to a unified ChatResponse."""
        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []

        for block in raw.content or ():
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                if not isinstance(block.input, Mapping):
                    raise ProtocolMismatchError(
                        f"tool_use block {block.id!r} carried non-object input"
                    )
                # Native object; re-serialize for arguments_json
                tool_calls.append(
                    ToolCall(
                        id=block.id,
                        function_name=block.name,
                        arguments_json=json.dumps(dict(block.input)),
                    )
                )

        finish = _FINISH_REASONS.get(raw.stop_reason or "", FinishReason.OTHER)
        if tool_calls:
            finish = FinishReason.TOOL_CALLS

        usage = None
        if raw.usage is not None:
            usage = Usage(
                prompt_tokens=raw.usage.input_tokens,
                completion_tokens=raw.usage.output_tokens,
                total_tokens=raw.usage.input_tokens + raw.usage.output_tokens,
            )

        return ChatResponse(
            content="".join(text_parts),
            tool_calls=tool_calls,
            finish_reason=finish,
            usage=usage,
            raw=raw,
        )

    def stream_text(self, raw_chunk: Any) -> ChatResponse:
        """Extract content from a raw Anthropic streaming event."""
        content = ""
        finish = FinishReason.OTHER

        event_type = getattr(raw_chunk, "type", None)
        if event_type == "content_block_delta":
            delta = getattr(raw_chunk, "delta", None)
            if getattr(delta, "type", None) == "text_delta":
                content = delta.text
        elif event_type == "message_delta":
            stop_reason = getattr(raw_chunk.delta, "stop_reason", None)
            finish = _FINISH_REASONS.get(stop_reason or "", FinishReason.OTHER)

        return ChatResponse(content=content, finish_reason=finish, raw=raw_chunk)

    @staticmethod
    def tool_definition_from(tool: Mapping[str, Any]) -> ToolDefinition:
        """Read an Anthropic tool back into a ToolDefinition."""
        return ToolDefinition(
            name=tool.get("name", ""),
            description=tool.get("description", ""),
            parameters=ToolParameters.from_json_schema(tool.get("input_schema")),
        )


def _is_tool_result_message(message: dict[str, Any]) -> bool:
    content = message.get("content")
    return (
        message.get("role") == "user"
        and isinstance(content, list)
        and bool(content)
        and all(block.get("type") == "tool_result" for block in content)
    )
