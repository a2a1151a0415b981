from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional, Self, Sequence

from openai import AsyncOpenAI
from openai.types.chat import ChatCompletion, ChatCompletionChunk

from agent_bridge.adapters.openai import OpenAIRequestAdapter
from agent_bridge.provider import Provider
from agent_bridge.providers.base import BaseAsyncLLM
from agent_bridge.types import Message, ToolDefinition


class OpenAILLM(BaseAsyncLLM):
    """
    OpenAI LLM implementation (async‑only).

    Use ``OpenAILLM.from_client`` when you already have an ``AsyncOpenAI`` instance.
    """

    provider = Provider.OPENAI
    default_model = "gpt-4o"

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
        self._client: Optional[AsyncOpenAI] = None
        if api_key:
            # Retries are the caller's decision
            self._client = AsyncOpenAI(
                api_key=api_key,
                timeout=timeout,
                max_retries=0,
                base_url=base_url,
            )
        self._adapter = OpenAIRequestAdapter(self.model)

    # Alternate constructor
    @classmethod
    def from_client(
        cls,
        model: Optional[str],
        client: AsyncOpenAI,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        **kwargs: Any,
    ) -> Self:
        """
        Build an ``OpenAILLM`` around an already‑configured ``AsyncOpenAI`` client.
        """
        if not isinstance(client, AsyncOpenAI):
            raise TypeError(
                f"OpenAILLM.from_client expects AsyncOpenAI; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(
            self, model, api_key=client.api_key or "", logger=logger, name=name, **kwargs
        )
        self._client = client
        self._adapter = OpenAIRequestAdapter(self.model)
        return self

    @property
    def adapter(self) -> OpenAIRequestAdapter:
        """Request adapter for OpenAI provider."""
        return self._adapter

    async def _chat_impl(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
        tools: Optional[Sequence[ToolDefinition]],
    ) -> ChatCompletion:
        """Core implementation for OpenAI chat requests."""
        args = {"model": self.model, **self._adapter.to_provider(messages, params, tools)}
        return await self._client.chat.completions.create(**args)

    async def _stream_impl(
        self, messages: Sequence[Message], params: dict[str, Any]
    ) -> AsyncIterator[ChatCompletionChunk]:
        args = {
            "model": self.model,
            "stream": True,
            **self._adapter.to_provider(messages, params),
        }
        stream = await self._client.chat.completions.create(**args)
        async for chunk in stream:
            yield chunk
