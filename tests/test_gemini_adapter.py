"""Tests for the Google GenAI request adapter."""

import json

import pytest
from google.genai import types

from agent_bridge.adapters.gemini import GeminiRequestAdapter
from agent_bridge.errors import ProtocolMismatchError
from agent_bridge.params import normalize_params
from agent_bridge.types import FinishReason, Message, ToolCall


def response(parts: list, finish_reason=types.FinishReason.STOP) -> types.GenerateContentResponse:
    return types.GenerateContentResponse(
        candidates=[
            types.Candidate(
                content=types.Content(role="model", parts=parts),
                finish_reason=finish_reason,
            )
        ],
        usage_metadata=types.GenerateContentResponseUsageMetadata(
            prompt_token_count=10, candidates_token_count=4, total_token_count=14
        ),
    )


class TestGeminiRequestAdapter:
    """Tool results are matched to calls by function name."""

    @pytest.fixture
    def adapter(self):
        return GeminiRequestAdapter()

    def test_system_instruction_and_roles(self, adapter):
        request = adapter.to_provider(
            [Message.system("Be terse"), Message.user("Hi"), Message.assistant("Hello")],
            normalize_params({}),
        )

        assert request["config"].system_instruction == "Be terse"
        contents = request["contents"]
        assert [c.role for c in contents] == ["user", "model"]
        assert contents[1].parts[0].text == "Hello"

    def test_function_response_named_after_call(self, adapter, pods_call):
        messages = [
            Message.user("list pods"),
            Message.assistant("", [pods_call]),
            Message.tool("c1", "pod-a"),
        ]

        contents = adapter.to_provider(messages, normalize_params({}))["contents"]

        call_part = contents[1].parts[0]
        assert call_part.function_call.name == "get_pods"
        assert call_part.function_call.args == {"namespace": "default"}
        response_part = contents[2].parts[0]
        assert contents[2].role == "user"
        assert response_part.function_response.name == "get_pods"
        assert response_part.function_response.response == {"result": "pod-a"}

    def test_consecutive_tool_results_grouped(self, adapter):
        calls = [ToolCall("c1", "get_pods"), ToolCall("c2", "get_nodes")]
        messages = [
            Message.user("status"),
            Message.assistant("", calls),
            Message.tool("c2", "node-1"),
            Message.tool("c1", "pod-a"),
        ]

        contents = adapter.to_provider(messages, normalize_params({}))["contents"]

        assert len(contents) == 3
        names = [p.function_response.name for p in contents[2].parts]
        assert names == ["get_nodes", "get_pods"]

    def test_names_resolved_across_turns(self, adapter):
        """The id map covers the whole history, not just the last turn."""
        messages = [
            Message.user("a"),
            Message.assistant("", [ToolCall("c1", "first_tool")]),
            Message.user("b"),
            Message.assistant("", [ToolCall("c2", "second_tool")]),
            Message.tool("c1", "late answer"),
        ]

        contents = adapter.to_provider(messages, normalize_params({}))["contents"]

        assert contents[-1].parts[0].function_response.name == "first_tool"

    def test_unknown_tool_call_id(self, adapter):
        messages = [Message.user("a"), Message.tool("missing", "x")]

        with pytest.raises(ProtocolMismatchError):
            adapter.to_provider(messages, normalize_params({}))

    def test_config_with_tools(self, adapter, sample_tool):
        config = adapter.to_provider(
            [Message.user("hi")],
            normalize_params({"temperature": 0.2, "max_tokens": 99, "stop": ["END"]}),
            [sample_tool],
        )["config"]

        assert config.temperature == 0.2
        assert config.max_output_tokens == 99
        assert config.stop_sequences == ["END"]
        assert config.automatic_function_calling.disable is True
        mode = config.tool_config.function_calling_config.mode
        assert mode == types.FunctionCallingConfigMode.AUTO
        (declaration,) = config.tools[0].function_declarations
        assert declaration.name == "lookup"
        assert declaration.parameters_json_schema == sample_tool.json_schema

    def test_config_without_tools(self, adapter):
        config = adapter.to_provider([Message.user("hi")], normalize_params({}))["config"]

        assert config.tools is None
        assert config.tool_config is None

    def test_unknown_extras_ignored(self, adapter):
        config = adapter.build_config(normalize_params({"top_k": 5, "no_such_field": 1}))

        assert config.top_k == 5

    def test_schema_round_trip(self, adapter, sample_tool):
        (tool,) = adapter.build_tools([sample_tool])
        echoed = GeminiRequestAdapter.tool_definition_from(tool.function_declarations[0])

        assert echoed.name == sample_tool.name
        assert echoed.parameters.required == sample_tool.parameters.required
        assert echoed.parameters.properties["b"].enum == ("x", "y")

    def test_from_provider_text(self, adapter):
        raw = response([types.Part(text="Hello "), types.Part(text="there")])

        result = adapter.from_provider(raw)

        assert result.content == "Hello there"
        assert result.finish_reason is FinishReason.STOP
        assert result.usage.total_tokens == 14

    def test_from_provider_skips_thoughts(self, adapter):
        raw = response([types.Part(text="thinking...", thought=True), types.Part(text="Answer")])

        assert adapter.from_provider(raw).content == "Answer"

    def test_from_provider_function_call_without_id(self, adapter):
        raw = response(
            [types.Part(function_call=types.FunctionCall(name="get_pods", args={"namespace": "x"}))]
        )

        result = adapter.from_provider(raw)

        (call,) = result.tool_calls
        assert call.id.startswith("call_")
        assert call.function_name == "get_pods"
        assert json.loads(call.arguments_json) == {"namespace": "x"}
        assert result.finish_reason is FinishReason.TOOL_CALLS

    def test_from_provider_keeps_vendor_id(self, adapter):
        raw = response(
            [types.Part(function_call=types.FunctionCall(id="fc-7", name="get_pods", args={}))]
        )

        assert adapter.from_provider(raw).tool_calls[0].id == "fc-7"

    def test_thought_signature_round_trip(self, adapter):
        raw = response(
            [
                types.Part(
                    function_call=types.FunctionCall(id="fc-1", name="get_pods", args={}),
                    thought_signature=b"sig-1",
                )
            ]
        )
        reply = adapter.from_provider(raw).to_message()

        _, contents = adapter.build_contents(
            [Message.user("list pods"), reply, Message.tool("fc-1", "pod-a")]
        )

        assert reply.tool_calls[0].signature == b"sig-1"
        call_part = contents[1].parts[0]
        assert call_part.function_call.name == "get_pods"
        assert call_part.thought_signature == b"sig-1"

    def test_calls_without_signature(self, adapter, pods_call):
        _, contents = adapter.build_contents([Message.user("q"), Message.assistant("", [pods_call])])

        assert contents[1].parts[0].thought_signature is None

    def test_derived_ids_are_unique(self, adapter):
        part = types.Part(function_call=types.FunctionCall(name="get_pods", args={}))
        result = adapter.from_provider(response([part, part]))

        first, second = result.tool_calls
        assert first.id != second.id

    def test_max_tokens_finish(self, adapter):
        raw = response([types.Part(text="cut")], finish_reason=types.FinishReason.MAX_TOKENS)

        assert adapter.from_provider(raw).finish_reason is FinishReason.LENGTH

    def test_from_provider_without_candidates(self, adapter):
        with pytest.raises(ProtocolMismatchError):
            adapter.from_provider(types.GenerateContentResponse(candidates=[]))
