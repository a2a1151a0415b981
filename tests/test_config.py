"""Tests for provider resolution and environment-backed configuration."""

import pytest

from agent_bridge.config import ProviderConfig, SummarizerConfig
from agent_bridge.errors import NotConfiguredError
from agent_bridge.provider import Provider, find_api_key, get_api_key


@pytest.fixture
def clean_env(monkeypatch):
    for name in (
        "OPENAI_API_KEY",
        "ANTHROPIC_API_KEY",
        "GEMINI_API_KEY",
        "GOOGLE_API_KEY",
        "AGENT_BRIDGE_MODEL",
        "AGENT_BRIDGE_BASE_URL",
        "AGENT_BRIDGE_TIMEOUT",
        "AGENT_BRIDGE_CONTEXT_LENGTH",
        "AGENT_BRIDGE_SUMMARIZE_AT_PERCENT",
        "AGENT_BRIDGE_KEEP_CONVERSATIONS",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


class TestProvider:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("openai", Provider.OPENAI),
            (" Anthropic ", Provider.ANTHROPIC),
            ("gemini", Provider.GOOGLE),
            ("google", Provider.GOOGLE),
            (Provider.OPENAI, Provider.OPENAI),
        ],
    )
    def test_parse(self, name, expected):
        assert Provider.parse(name) is expected

    def test_parse_unknown(self):
        with pytest.raises(NotConfiguredError, match="Unsupported provider"):
            Provider.parse("mistral")

    def test_google_key_fallback(self, clean_env):
        clean_env.setenv("GOOGLE_API_KEY", "g-key")

        assert find_api_key(Provider.GOOGLE) == "g-key"

        clean_env.setenv("GEMINI_API_KEY", "gem-key")
        assert find_api_key(Provider.GOOGLE) == "gem-key"

    def test_missing_key(self, clean_env):
        assert find_api_key(Provider.ANTHROPIC) is None
        with pytest.raises(NotConfiguredError, match="ANTHROPIC_API_KEY"):
            get_api_key(Provider.ANTHROPIC)


class TestProviderConfig:
    def test_from_env(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-test")
        clean_env.setenv("AGENT_BRIDGE_MODEL", "gpt-4o-mini")
        clean_env.setenv("AGENT_BRIDGE_TIMEOUT", "12.5")
        clean_env.setenv("AGENT_BRIDGE_CONTEXT_LENGTH", "32000")

        config = ProviderConfig.from_env(Provider.OPENAI)

        assert config.api_key == "sk-test"
        assert config.model == "gpt-4o-mini"
        assert config.timeout == 12.5
        assert config.context_length == 32000
        assert config.base_url is None

    def test_overrides_win(self, clean_env):
        clean_env.setenv("OPENAI_API_KEY", "sk-test")

        config = ProviderConfig.from_env(Provider.OPENAI, api_key="sk-other", params={"temperature": 0})

        assert config.api_key == "sk-other"
        assert config.params == {"temperature": 0}

    def test_bad_integer(self, clean_env):
        clean_env.setenv("AGENT_BRIDGE_CONTEXT_LENGTH", "lots")

        with pytest.raises(ValueError, match="AGENT_BRIDGE_CONTEXT_LENGTH"):
            ProviderConfig.from_env(Provider.OPENAI)


class TestSummarizerConfig:
    def test_defaults(self, clean_env):
        config = SummarizerConfig.from_env()

        assert config.summarize_at_percent == 70
        assert config.keep_conversations == 1

    def test_from_env(self, clean_env):
        clean_env.setenv("AGENT_BRIDGE_SUMMARIZE_AT_PERCENT", "85")
        clean_env.setenv("AGENT_BRIDGE_KEEP_CONVERSATIONS", "3")

        config = SummarizerConfig.from_env()

        assert (config.summarize_at_percent, config.keep_conversations) == (85, 3)
