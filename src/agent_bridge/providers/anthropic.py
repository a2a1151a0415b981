from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional, Self, Sequence

from anthropic import AsyncAnthropic
from anthropic.types import Message as AnthropicMessage

from agent_bridge.adapters.anthropic import AnthropicRequestAdapter
from agent_bridge.provider import Provider
from agent_bridge.providers.base import BaseAsyncLLM
from agent_bridge.types import Message, ToolDefinition


class AnthropicLLM(BaseAsyncLLM):
    """
    Anthropic LLM implementation (async‑only).

    Use ``AnthropicLLM.from_client`` when you already have an ``AsyncAnthropic`` instance.
    """

    provider = Provider.ANTHROPIC
    default_model = "claude-3-5-sonnet-20241022"

    def __init__(
        self,
        model: Optional[str] = None,
        *,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        context_length: Optional[int] = None,
        params: Optional[dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        super().__init__(
            model,
            api_key=api_key,
            context_length=context_length,
            params=params,
            logger=logger,
            name=name,
            base_url=base_url,
        )
        self._client: Optional[AsyncAnthropic] = None
        if api_key:
            self._client = AsyncAnthropic(
                api_key=api_key,
                timeout=timeout,
                max_retries=0,
                base_url=base_url,
            )
        self._adapter = AnthropicRequestAdapter()

    @classmethod
    def from_client(
        cls,
        model: Optional[str],
        client: AsyncAnthropic,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        **kwargs: Any,
    ) -> Self:
        """
        Wrap an existing ``AsyncAnthropic`` client.
        """
        if not isinstance(client, AsyncAnthropic):
            raise TypeError(
                f"AnthropicLLM.from_client expects AsyncAnthropic; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(
            self, model, api_key=client.api_key or "", logger=logger, name=name, **kwargs
        )
        self._client = client
        self._adapter = AnthropicRequestAdapter()
        return self

    @property
    def adapter(self) -> AnthropicRequestAdapter:
        """Request adapter for Anthropic provider."""
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
        tools: Optional[Sequence[ToolDefinition]],
    ) -> AnthropicMessage:
        """Core implementation for Anthropic chat requests."""
        args = {"model": self.model, **self._adapter.to_provider(messages, params, tools)}
        return await self._client.messages.create(**args)

    async def _stream_impl(
        self, messages: Sequence[Message], params: dict[str, Any]
    ) -> AsyncIterator[Any]:
        """Handle Anthropic-specific streaming with context manager."""
        args = {"model": self.model, **self._adapter.to_provider(messages, params)}
        async with self._client.messages.stream(**args) as stream:
            async for event in stream:
                yield event
