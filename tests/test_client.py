"""Tests for the unified provider facade."""

from unittest.mock import AsyncMock

import pytest

from agent_bridge.client import UnifiedLLM, create_llm
from agent_bridge.config import ProviderConfig
from agent_bridge.errors import NotConfiguredError
from agent_bridge.provider import Provider
from agent_bridge.providers import AnthropicLLM, GeminiLLM, OpenAILLM
from agent_bridge.types import ChatResponse, Message


class NoToolsLLM(OpenAILLM):
    supports_tools = False


class TestCreateLLM:
    def test_registry(self):
        config = ProviderConfig(api_key="k")

        assert isinstance(create_llm("openai", config=config), OpenAILLM)
        assert isinstance(create_llm(Provider.ANTHROPIC, config=config), AnthropicLLM)
        assert isinstance(create_llm("gemini", config=config), GeminiLLM)

    def test_model_and_config(self):
        config = ProviderConfig(api_key="k", model="gpt-4o-mini", context_length=500)

        llm = create_llm("openai", config=config)

        assert llm.model == "gpt-4o-mini"
        assert llm.get_context_length() == 500
        assert create_llm("openai", "o3", config=config).model == "o3"

    def test_unknown_provider(self):
        with pytest.raises(NotConfiguredError):
            create_llm("mistral", config=ProviderConfig(api_key="k"))

    def test_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "from-env")

        llm = create_llm("anthropic")

        assert llm.api_key == "from-env"

    def test_explicit_key_wins(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "from-env")

        assert create_llm("anthropic", config=ProviderConfig(api_key="cfg")).api_key == "cfg"
        assert create_llm("anthropic", api_key="arg", config=ProviderConfig(api_key="cfg")).api_key == "arg"


class TestUnifiedLLM:
    def test_unknown_provider_fails_fast(self):
        with pytest.raises(NotConfiguredError):
            UnifiedLLM("mistral", ProviderConfig(api_key="k"))

    def test_missing_credential_fails_fast(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with pytest.raises(NotConfiguredError):
            UnifiedLLM("openai", ProviderConfig(api_key=None))

    def test_config_without_key_uses_environment(self, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

        llm = UnifiedLLM("openai", ProviderConfig(model="gpt-4o-mini"))

        assert llm.is_configured()
        assert llm.llm.api_key == "sk-env"
        assert llm.model == "gpt-4o-mini"

    def test_delegation(self):
        llm = UnifiedLLM("google", ProviderConfig(api_key="k", model="gemini-2.0-flash"))

        assert llm.is_configured()
        assert llm.provider is Provider.GOOGLE
        assert llm.model == "gemini-2.0-flash"
        assert llm.name == "GeminiLLM"
        assert llm.get_context_length() == 1_048_576
        assert llm.estimate_tokens([Message.user("abcd")]) == 1 + 4

    @pytest.mark.asyncio
    async def test_chat_with_tools_degrades(self, sample_tool):
        inner = NoToolsLLM(api_key="k")
        inner.chat = AsyncMock(return_value=ChatResponse(content="plain"))
        llm = UnifiedLLM.from_llm(inner)

        response = await llm.chat_with_tools([Message.user("hi")], [sample_tool])

        assert response.content == "plain"
        inner.chat.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_chat_with_tools_forwards(self, sample_tool):
        inner = OpenAILLM(api_key="k")
        inner.chat_with_tools = AsyncMock(return_value=ChatResponse(content="ok"))
        llm = UnifiedLLM.from_llm(inner)

        await llm.chat_with_tools([Message.user("hi")], [sample_tool], params={"temperature": 0})

        args, kwargs = inner.chat_with_tools.call_args
        assert args[1] == [sample_tool]
        assert kwargs["params"] == {"temperature": 0}

    def test_from_llm_requires_configuration(self):
        with pytest.raises(NotConfiguredError):
            UnifiedLLM.from_llm(OpenAILLM(api_key=None))

    @pytest.mark.asyncio
    async def test_aclose(self):
        inner = OpenAILLM(api_key="k")
        inner.aclose = AsyncMock()

        async with UnifiedLLM.from_llm(inner):
            pass

        inner.aclose.assert_awaited_once()
