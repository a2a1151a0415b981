"""
Unified provider facade.

``create_llm`` is the low-level factory; ``UnifiedLLM`` wraps the adapter it
returns and refuses to exist without credentials.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional, Sequence, Type

from agent_bridge.config import ProviderConfig
from agent_bridge.errors import NotConfiguredError
from agent_bridge.provider import Provider, find_api_key
from agent_bridge.providers import AnthropicLLM, BaseAsyncLLM, GeminiLLM, OpenAILLM
from agent_bridge.types import ChatResponse, Message, ToolDefinition

__all__ = ["UnifiedLLM", "create_llm"]

# map Provider enum to its LLM implementation
_LLM_REGISTRY: dict[Provider, Type[BaseAsyncLLM]] = {
    Provider.OPENAI: OpenAILLM,
    Provider.ANTHROPIC: AnthropicLLM,
    Provider.GOOGLE: GeminiLLM,
}


def create_llm(
    provider: Provider | str,
    model: Optional[str] = None,
    *,
    api_key: Optional[str] = None,
    client: Any = None,
    logger: Optional[logging.Logger] = None,
    config: Optional[ProviderConfig] = None,
    **provider_kwargs: Any,
) -> BaseAsyncLLM:
    """
    Factory for creating any supported LLM.

    Args:
        provider: Which provider to use ("openai", "anthropic", "google"/"gemini").
        model: Model identifier; overrides ``config.model``.
        api_key: Overrides ``config.api_key``; both fall back to the
            provider's environment variable.
        client: Optional pre-configured SDK client to use.
            - For Provider.OPENAI: an AsyncOpenAI instance
            - For Provider.ANTHROPIC: an AsyncAnthropic instance
            - For Provider.GOOGLE: a google.genai.Client instance
        logger: Optional custom logger.
        config: Credentials, base URL, timeout and default params. Read
            from the environment when omitted.
        **provider_kwargs: Any extra args to pass through (name, context_length).

    The returned LLM may be unconfigured; check ``is_configured()`` or use
    ``UnifiedLLM`` which does so on construction.
    """
    kind = Provider.parse(provider)
    llm_cls = _LLM_REGISTRY[kind]
    config = config or ProviderConfig.from_env(kind)

    kwargs: dict[str, Any] = {
        "context_length": config.context_length,
        "params": config.params,
        **provider_kwargs,
    }
    model = model or config.model

    if client is not None:  # use caller‑supplied client verbatim
        return llm_cls.from_client(model, client, logger=logger, **kwargs)

    return llm_cls(
        model,
        api_key=api_key or config.api_key or find_api_key(kind),
        timeout=config.timeout,
        base_url=config.base_url,
        logger=logger,
        **kwargs,
    )


class UnifiedLLM:
    """
    One conversation-facing LLM regardless of vendor.

    Construction fails with ``NotConfiguredError`` for an unknown provider or
    when the selected adapter has no credential.
    """

    def __init__(
        self,
        provider: Provider | str,
        config: Optional[ProviderConfig] = None,
        *,
        client: Any = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        llm = create_llm(provider, client=client, logger=logger, config=config)
        self._bind(llm)

    @classmethod
    def from_llm(cls, llm: BaseAsyncLLM) -> "UnifiedLLM":
        """Wrap an already-built adapter."""
        self = cls.__new__(cls)
        self._bind(llm)
        return self

    def _bind(self, llm: BaseAsyncLLM) -> None:
        if not llm.is_configured():
            raise NotConfiguredError(
                f"{llm.provider or llm.name} is not configured: missing API key"
            )
        self._llm = llm

    @property
    def llm(self) -> BaseAsyncLLM:
        return self._llm

    @property
    def name(self) -> str:
        return self._llm.name

    @property
    def model(self) -> str:
        return self._llm.model

    @property
    def provider(self) -> Optional[Provider]:
        return self._llm.provider

    def is_configured(self) -> bool:
        return self._llm.is_configured()

    async def chat(
        self, messages: Sequence[Message], *, params: Optional[dict[str, Any]] = None
    ) -> ChatResponse:
        return await self._llm.chat(messages, params=params)

    async def chat_with_tools(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
        *,
        params: Optional[dict[str, Any]] = None,
    ) -> ChatResponse:
        """Tool-augmented chat; degrades to plain chat when the adapter has no tools."""
        if not self._llm.supports_tools:
            self._llm._log("Tool calling not supported; sending without tools", logging.DEBUG)
            return await self._llm.chat(messages, params=params)
        return await self._llm.chat_with_tools(messages, tools, params=params)

    def stream(
        self, messages: Sequence[Message], *, params: Optional[dict[str, Any]] = None
    ) -> AsyncIterator[ChatResponse]:
        return self._llm.stream(messages, params=params)

    def estimate_tokens(self, messages: Sequence[Message]) -> int:
        return self._llm.estimate_tokens(messages)

    def get_context_length(self) -> int:
        return self._llm.get_context_length()

    async def aclose(self) -> None:
        await self._llm.aclose()

    async def __aenter__(self) -> "UnifiedLLM":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
