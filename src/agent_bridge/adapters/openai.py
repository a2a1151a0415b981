"""OpenAI adapter for pure request/response transformations."""

from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence

from openai.types.chat import ChatCompletion, ChatCompletionChunk

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


_FINISH_REASONS = {
    "stop": FinishReason.STOP,
    "tool_calls": FinishReason.TOOL_CALLS,
    "function_call": FinishReason.TOOL_CALLS,
    "length": FinishReason.LENGTH,
}

# Models that require max_completion_tokens instead of max_tokens
_MAX_COMPLETION_TOKENS_PREFIXES = ("gpt-5", "o1", "o3", "o4")

# Only meaningful when tools are sent
_TOOL_ONLY_PARAMS = ("tool_choice", "parallel_tool_calls")


class OpenAIRequestAdapter:
    """Adapter for converting between the conversation model and OpenAI format."""

    def __init__(self, model: str = "") -> None:
        self.model = model

    def build_messages(self, messages: Sequence[Message]) -> list[dict[str, Any]]:
        """System stays a normal message; tool calls are a flat list."""
        openai_messages: list[dict[str, Any]] = []

        for msg in messages:
            openai_msg: dict[str, Any] = {"role": msg.role.value, "content": msg.content}

            if msg.role is Role.ASSISTANT and msg.tool_calls:
                openai_msg["tool_calls"] = [
                    {
                        "id": call.id,
                        "type": "function",
                        "function": {
                            "name": call.function_name,
                            "arguments": call.arguments_json,
                        },
                    }
                    for call in msg.tool_calls
                ]
                # content must be null when tool_calls is present
                if not msg.content:
                    openai_msg["content"] = None

            if msg.role is Role.TOOL:
                openai_msg["tool_call_id"] = msg.tool_call_id

            openai_messages.append(openai_msg)

        return openai_messages

    def build_tools(self, tools: Sequence[ToolDefinition]) -> list[dict[str, Any]]:
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.json_schema,
                },
            }
            for tool in tools
        ]

    def build_params(self, params: dict[str, Any], *, with_tools: bool) -> dict[str, Any]:
        """Convert normalized params to OpenAI API parameters."""
        base_params = dict(params)
        extras = base_params.pop("extra", {})

        if not with_tools:
            for key in _TOOL_ONLY_PARAMS:
                base_params.pop(key, None)

        if "max_tokens" in base_params and self._requires_max_completion_tokens():
            base_params["max_completion_tokens"] = base_params.pop("max_tokens")

        # Provider-specific extras (reasoning_effort, verbosity, ...) go
        # through extra_body so older SDKs forward them unchanged
        if extras:
            base_params["extra_body"] = dict(extras)

        return base_params

    def _requires_max_completion_tokens(self) -> bool:
        return self.model.startswith(_MAX_COMPLETION_TOKENS_PREFIXES)

    def to_provider(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
        tools: Optional[Sequence[ToolDefinition]] = None,
    ) -> dict[str, Any]:
        """Convert messages, params and tools to OpenAI request kwargs."""
        request: dict[str, Any] = {
            "messages": self.build_messages(messages),
            **self.build_params(params, with_tools=bool(tools)),
        }
        if tools:
            request["tools"] = self.build_tools(tools)
        return request

    def from_provider(self, raw: ChatCompletion) -> ChatResponse:
        """Convert an OpenAI response to a unified ChatResponse."""
        if not raw.choices:
            raise ProtocolMismatchError("OpenAI response contained no choices")

        choice = raw.choices[0]
        message = choice.message
        tool_calls: list[ToolCall] = []

        for tc in message.tool_calls or ():
            function = getattr(tc, "function", None)
            if tc.type != "function" or function is None:
                raise ProtocolMismatchError(f"unsupported OpenAI tool call type {tc.type!r}")
            # Arguments are already serialized JSON; echo them verbatim
            tool_calls.append(
                ToolCall(
                    id=tc.id,
                    function_name=function.name,
                    arguments_json=function.arguments or "{}",
                )
            )

        finish = _FINISH_REASONS.get(choice.finish_reason or "", FinishReason.OTHER)
        if tool_calls:
            finish = FinishReason.TOOL_CALLS

        usage = None
        if raw.usage is not None:
            usage = Usage(
                prompt_tokens=raw.usage.prompt_tokens,
                completion_tokens=raw.usage.completion_tokens,
                total_tokens=raw.usage.total_tokens,
            )

        return ChatResponse(
            content=message.content or "",
            tool_calls=tool_calls,
            finish_reason=finish,
            usage=usage,
            raw=raw,
        )

    def stream_text(self, raw_chunk: ChatCompletionChunk) -> ChatResponse:
        """Extract content from a streaming chunk."""
        content = ""
        finish = FinishReason.OTHER
        if raw_chunk.choices:
            choice = raw_chunk.choices[0]
            if choice.delta:
                content = choice.delta.content or ""
            if choice.finish_reason:
                finish = _FINISH_REASONS.get(choice.finish_reason, FinishReason.OTHER)

        return ChatResponse(content=content, finish_reason=finish, raw=raw_chunk)

    @staticmethod
    def tool_definition_from(tool: Mapping[str, Any]) -> ToolDefinition:
        """Read an OpenAI function tool back into a ToolDefinition."""
        function = tool.get("function") or {}
        return ToolDefinition(
            name=function.get("name", ""),
            description=function.get("description", ""),
            parameters=ToolParameters.from_json_schema(function.get("parameters")),
        )
