import pytest

from agent_bridge.types import ParameterSpec, ToolCall, ToolDefinition

from fakes import FakeLLM


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def pods_call() -> ToolCall:
    return ToolCall(id="c1", function_name="get_pods", arguments_json='{"namespace": "default"}')


@pytest.fixture
def sample_tool() -> ToolDefinition:
    """A tool with one string and one enum parameter."""
    return ToolDefinition.create(
        "lookup",
        "Look something up",
        {
            "a": ParameterSpec("string", "free text"),
            "b": ParameterSpec("enum", "a choice", ("x", "y")),
        },
        required=["a"],
    )
