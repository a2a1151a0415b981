"""Google GenAI adapter for pure request/response transformations.

Gemini matches function responses to calls by *function name*, not by id,
so tool results are reconciled through an id -> name map rebuilt from the
whole history on every request.
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, Optional, Sequence

from google.genai import types

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

_FINISH_REASONS = {
    "STOP": FinishReason.STOP,
    "MAX_TOKENS": FinishReason.LENGTH,
}

_FUNCTION_CALLING_MODES = {
    "auto": types.FunctionCallingConfigMode.AUTO,
    "required": types.FunctionCallingConfigMode.ANY,
    "any": types.FunctionCallingConfigMode.ANY,
    "none": types.FunctionCallingConfigMode.NONE,
}

# Normalized key -> GenerateContentConfig field
_CONFIG_FIELDS = {
    "temperature": "temperature",
    "top_p": "top_p",
    "max_tokens": "max_output_tokens",
    "seed": "seed",
    "frequency_penalty": "frequency_penalty",
    "presence_penalty": "presence_penalty",
}


def new_call_id() -> str:
    return f"call_{uuid.uuid4().hex[:24]}"


def tool_call_names(messages: Sequence[Message]) -> dict[str, str]:
    """Map every tool-call id in *messages* to its function name."""
    return {
        call.id: call.function_name
        for msg in messages
        if msg.role is Role.ASSISTANT
        for call in msg.tool_calls
    }


class GeminiRequestAdapter:
    """Adapter for converting between the conversation model and Google GenAI format."""

    def build_contents(
        self, messages: Sequence[Message]
    ) -> tuple[Optional[str], list[types.Content]]:
        """Return the system instruction and the ``contents`` list."""
        names = tool_call_names(messages)
        system_parts: list[str] = []
        contents: list[types.Content] = []
        # Parts of the user content currently collecting function responses
        pending_responses: Optional[list[types.Part]] = None

        for msg in messages:
            if msg.role is Role.SYSTEM:
                system_parts.append(msg.content)
                continue

            if msg.role is Role.TOOL:
                name = names.get(msg.tool_call_id or "")
                if name is None:
                    raise ProtocolMismatchError(
                        f"tool result {msg.tool_call_id!r} does not answer any earlier tool call"
                    )
                part = types.Part(
                    function_response=types.FunctionResponse(
                        id=msg.tool_call_id,
                        name=name,
                        response={"result": msg.content},
                    )
                )
                if pending_responses is None:
                    pending_responses = [part]
                    contents.append(types.Content(role="user", parts=pending_responses))
                else:
                    pending_responses.append(part)
                continue

            pending_responses = None

            if msg.role is Role.ASSISTANT:
                parts: list[types.Part] = []
                if msg.content:
                    parts.append(types.Part(text=msg.content))
                for call in msg.tool_calls:
                    parts.append(
                        types.Part(
                            function_call=types.FunctionCall(
                                id=call.id,
                                name=call.function_name,
                                args=parse_arguments(call),
                            ),
                            thought_signature=call.signature,
                        )
                    )
                if not parts:
                    parts.append(types.Part(text=""))
                contents.append(types.Content(role="model", parts=parts))
                continue

            contents.append(types.Content(role="user", parts=[types.Part(text=msg.content)]))

        system_instruction = "\n\n".join(system_parts) if system_parts else None
        return system_instruction, contents

    def build_tools(self, tools: Sequence[ToolDefinition]) -> list[types.Tool]:
        declarations = [
            types.FunctionDeclaration(
                name=tool.name,
                description=tool.description,
                parameters_json_schema=tool.json_schema,
            )
            for tool in tools
        ]
        return [types.Tool(function_declarations=declarations)]

    def build_config(
        self,
        params: dict[str, Any],
        *,
        system_instruction: Optional[str] = None,
        tools: Optional[Sequence[ToolDefinition]] = None,
    ) -> types.GenerateContentConfig:
        """Convert normalized params to a ``GenerateContentConfig``."""
        base_params = dict(params)
        extras = base_params.pop("extra", {})
        config: dict[str, Any] = {}

        for key, field_name in _CONFIG_FIELDS.items():
            if key in base_params:
                config[field_name] = base_params.pop(key)

        if "stop" in base_params:
            stop = base_params.pop("stop")
            config["stop_sequences"] = stop if isinstance(stop, list) else [stop]

        tool_choice = base_params.pop("tool_choice", None)
        base_params.pop("parallel_tool_calls", None)
        if base_params.pop("user", None) is not None:
            logger.debug("Dropping user: not supported by Google GenAI")

        if system_instruction is not None:
            config["system_instruction"] = system_instruction

        if tools:
            mode = _FUNCTION_CALLING_MODES.get(
                tool_choice if isinstance(tool_choice, str) else "auto",
                types.FunctionCallingConfigMode.AUTO,
            )
            config["tools"] = self.build_tools(tools)
            config["tool_config"] = types.ToolConfig(
                function_calling_config=types.FunctionCallingConfig(mode=mode)
            )
            # Tool calls are executed by the caller, never by the SDK
            config["automatic_function_calling"] = types.AutomaticFunctionCallingConfig(
                disable=True
            )

        known_fields = types.GenerateContentConfig.model_fields
        for k, v in extras.items():
            if k in known_fields:
                config.setdefault(k, v)
            else:
                logger.warning("Ignoring unknown Google GenAI config field %r", k)

        return types.GenerateContentConfig(**config)

    def to_provider(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
        tools: Optional[Sequence[ToolDefinition]] = None,
    ) -> dict[str, Any]:
        """Convert messages, params and tools to ``generate_content`` kwargs."""
        system_instruction, contents = self.build_contents(messages)
        return {
            "contents": contents,
            "config": self.build_config(
                params, system_instruction=system_instruction, tools=tools
            ),
        }

    def from_provider(self, raw: types.GenerateContentResponse) -> ChatResponse:
        """Convert a generate-content response to a unified ChatResponse."""
        if not raw.candidates:
            raise ProtocolMismatchError("Google GenAI response contained no candidates")

        candidate = raw.candidates[0]
        text_parts: list[str] = []
        tool_calls: list[ToolCall] = []

        parts = candidate.content.parts if candidate.content else None
        for part in parts or ():
            if part.function_call is not None:
                fc = part.function_call
                # Native args object; serialize for arguments_json
                tool_calls.append(
                    ToolCall(
                        id=fc.id or new_call_id(),
                        function_name=fc.name or "",
                        arguments_json=json.dumps(fc.args or {}),
                        signature=part.thought_signature,
                    )
                )
            elif part.text and not part.thought:
                text_parts.append(part.text)

        reason = candidate.finish_reason
        finish = _FINISH_REASONS.get(getattr(reason, "value", reason) or "", FinishReason.OTHER)
        if tool_calls:
            finish = FinishReason.TOOL_CALLS

        usage = None
        metadata = raw.usage_metadata
        if metadata is not None:
            prompt = metadata.prompt_token_count or 0
            completion = metadata.candidates_token_count or 0
            usage = Usage(
                prompt_tokens=prompt,
                completion_tokens=completion,
                total_tokens=metadata.total_token_count or prompt + completion,
            )

        return ChatResponse(
            content="".join(text_parts),
            tool_calls=tool_calls,
            finish_reason=finish,
            usage=usage,
            raw=raw,
        )

    def stream_text(self, raw_chunk: types.GenerateContentResponse) -> ChatResponse:
        """Extract content from a streamed generate-content chunk."""
        content = ""
        finish = FinishReason.OTHER
        if raw_chunk.candidates:
            candidate = raw_chunk.candidates[0]
            parts = candidate.content.parts if candidate.content else None
            content = "".join(p.text for p in parts or () if p.text and not p.thought)
            reason = candidate.finish_reason
            if reason is not None:
                finish = _FINISH_REASONS.get(getattr(reason, "value", reason), FinishReason.OTHER)
        return ChatResponse(content=content, finish_reason=finish, raw=raw_chunk)

    @staticmethod
    def tool_definition_from(declaration: types.FunctionDeclaration) -> ToolDefinition:
        """Read a FunctionDeclaration back into a ToolDefinition."""
        return ToolDefinition(
            name=declaration.name or "",
            description=declaration.description or "",
            parameters=ToolParameters.from_json_schema(declaration.parameters_json_schema),
        )
