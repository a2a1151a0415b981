from __future__ import annotations

import logging
from typing import Any, Optional, Self, Sequence

from google import genai
from google.genai import types

from agent_bridge.adapters.gemini import GeminiRequestAdapter
from agent_bridge.provider import Provider
from agent_bridge.providers.base import BaseAsyncLLM
from agent_bridge.types import Message, ToolDefinition


class GeminiLLM(BaseAsyncLLM):
    """
    Gemini LLM implementation on the native ``google-genai`` SDK.

    Requests go through ``client.aio``; streaming is not offered.
    """

    provider = Provider.GOOGLE
    default_model = "gemini-2.5-flash"

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
        self._client: Optional[genai.Client] = None
        if api_key:
            # HttpOptions.timeout is in milliseconds
            http_options = types.HttpOptions(timeout=int(timeout * 1000), base_url=base_url)
            self._client = genai.Client(api_key=api_key, http_options=http_options)
        self._adapter = GeminiRequestAdapter()

    @classmethod
    def from_client(
        cls,
        model: Optional[str],
        client: genai.Client,
        *,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        **kwargs: Any,
    ) -> Self:
        """
        Wrap an existing ``genai.Client``.
        """
        if not isinstance(client, genai.Client):
            raise TypeError(
                f"GeminiLLM.from_client expects genai.Client; got {type(client).__name__}"
            )

        self = cls.__new__(cls)  # bypass __init__
        BaseAsyncLLM.__init__(self, model, logger=logger, name=name, **kwargs)
        self._client = client
        self._adapter = GeminiRequestAdapter()
        return self

    @property
    def adapter(self) -> GeminiRequestAdapter:
        """Request adapter for Gemini provider."""
        return self._adapter

    def is_configured(self) -> bool:
        # genai.Client carries its own credential
        return self._client is not None

    async def _chat_impl(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
        tools: Optional[Sequence[ToolDefinition]],
    ) -> types.GenerateContentResponse:
        """Core implementation for Gemini generate-content requests."""
        request = self._adapter.to_provider(messages, params, tools)
        return await self._client.aio.models.generate_content(model=self.model, **request)

    async def aclose(self) -> None:
        """Close the async transport of the ``genai.Client``."""
        if self._client is None:
            return
        close = getattr(self._client.aio, "aclose", None)
        if close:
            await close()
