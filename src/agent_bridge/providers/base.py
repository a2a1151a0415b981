"""Base classes for LLM implementations."""
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, ClassVar, Optional, Protocol, Sequence

from agent_bridge.errors import (
    AgentBridgeError,
    NotConfiguredError,
    UnsupportedOperationError,
    UpstreamError,
    classify_error,
)
from agent_bridge.params import merge_params
from agent_bridge.provider import Provider
from agent_bridge.providers.limits import default_context_length
from agent_bridge.types import ChatResponse, Message, ToolDefinition

__all__ = ["BaseAsyncLLM", "RequestAdapter", "MESSAGE_OVERHEAD", "TOOL_CALL_OVERHEAD"]

# Heuristic token costs on top of chars/4
MESSAGE_OVERHEAD = 4
TOOL_CALL_OVERHEAD = 8


class RequestAdapter(Protocol):
    """Protocol for adapting between the conversation model and a vendor format."""

    def to_provider(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
        tools: Optional[Sequence[ToolDefinition]] = None,
    ) -> dict[str, Any]:
        """Convert messages, normalized params and tools to request kwargs."""
        ...

    def from_provider(self, raw: Any) -> ChatResponse:
        """Convert a vendor response to a unified ChatResponse."""
        ...

    def stream_text(self, raw_chunk: Any) -> ChatResponse:
        """Extract the text delta of a streaming chunk."""
        ...


class BaseAsyncLLM(ABC):
    """
    Base class for all LLM implementations. All implementations are async-first.

    Subclasses provide the SDK call in ``_chat_impl``; translation lives in the
    adapter so it can be tested without a network.
    """

    provider: ClassVar[Optional[Provider]] = None
    default_model: ClassVar[str] = ""
    supports_tools: ClassVar[bool] = True

    def __init__(
        self,
        model: Optional[str] = None,
        *,
        api_key: Optional[str] = None,
        context_length: Optional[int] = None,
        params: Optional[dict[str, Any]] = None,
        logger: Optional[logging.Logger] = None,
        name: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """
        Initializes the base LLM client.

        Args:
            model: The model identifier; defaults to the provider's default.
            api_key: Credential; the LLM reports ``is_configured() == False``
                     without one.
            context_length: Overrides the built-in context window table.
            params: Default request params merged under per-call params.
            logger: Optional logger instance. If None, a logger named after
                    this module will be used.
            name: Optional name for this component, used in logging.
                  If None, defaults to the concrete class's name.
        """
        self.model = model or self.default_model
        self.api_key = api_key
        self.base_url = base_url
        self.default_params = dict(params or {})
        self.logger = logger or logging.getLogger(__name__)
        self.name = name if name is not None else self.__class__.__name__
        self._context_length = context_length

    @property
    @abstractmethod
    def adapter(self) -> RequestAdapter:
        """Request adapter for this provider."""
        ...

    @abstractmethod
    async def _chat_impl(
        self,
        messages: Sequence[Message],
        params: dict[str, Any],
        tools: Optional[Sequence[ToolDefinition]],
    ) -> Any:
        """
        Send one non-streaming request and return the raw vendor response.

        Args:
            messages: The conversation history.
            params: Normalized request params.
            tools: Tool definitions, or None for a plain completion.
        """
        ...

    def _stream_impl(
        self, messages: Sequence[Message], params: dict[str, Any]
    ) -> AsyncIterator[Any]:
        raise UnsupportedOperationError(f"streaming is not implemented for {self.name}")

    # --- public API --------------------------------------------------------
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def chat(
        self,
        messages: Sequence[Message],
        *,
        params: Optional[dict[str, Any]] = None,
    ) -> ChatResponse:
        """Send a plain chat request (no tools) and return a single response."""
        return await self._request(messages, params, None)

    async def chat_with_tools(
        self,
        messages: Sequence[Message],
        tools: Sequence[ToolDefinition],
        *,
        params: Optional[dict[str, Any]] = None,
    ) -> ChatResponse:
        """Send a tool-augmented chat request."""
        if not self.supports_tools:
            raise UnsupportedOperationError(f"{self.name} does not support tool calling")
        return await self._request(messages, params, list(tools))

    async def stream(
        self,
        messages: Sequence[Message],
        *,
        params: Optional[dict[str, Any]] = None,
    ) -> AsyncIterator[ChatResponse]:
        """Send a chat request and yield text deltas as they arrive."""
        self._ensure_configured()
        merged = merge_params(self.default_params, params)
        self._log(f"Streaming from model {self.model}")
        try:
            async for chunk in self._stream_impl(messages, merged):
                yield self.adapter.stream_text(chunk)
        except AgentBridgeError:
            raise
        except Exception as exc:
            raise self._wrap_error(exc) from exc

    def estimate_tokens(self, messages: Sequence[Message]) -> int:
        """Rough token count: characters / 4 plus per-message overhead."""
        chars = 0
        calls = 0
        for msg in messages:
            chars += len(msg.content)
            for call in msg.tool_calls:
                chars += len(call.function_name) + len(call.arguments_json)
                calls += 1
        return (
            math.ceil(chars / 4)
            + MESSAGE_OVERHEAD * len(messages)
            + TOOL_CALL_OVERHEAD * calls
        )

    def get_context_length(self) -> int:
        if self._context_length and self._context_length > 0:
            return self._context_length
        return default_context_length(self.provider, self.model)

    # --- helpers -----------------------------------------------------------
    async def _request(
        self,
        messages: Sequence[Message],
        params: Optional[dict[str, Any]],
        tools: Optional[Sequence[ToolDefinition]],
    ) -> ChatResponse:
        self._ensure_configured()
        merged = merge_params(self.default_params, params)
        self._log(
            f"Sending request to model {self.model} "
            f"({len(messages)} messages, {len(tools or ())} tools)"
        )
        try:
            raw = await self._chat_impl(messages, merged, tools)
        except AgentBridgeError:
            raise
        except Exception as exc:
            raise self._wrap_error(exc) from exc
        return self.adapter.from_provider(raw)

    def _ensure_configured(self) -> None:
        if not self.is_configured():
            raise NotConfiguredError(f"{self.name} not configured: missing API key")

    def _wrap_error(self, exc: Exception) -> UpstreamError:
        """Wrap an SDK exception into an UpstreamError."""
        return classify_error(exc, self.logger)

    def _log(self, message: str, level: int = logging.INFO) -> None:
        self.logger.log(level, f"[{self.name}] {message}")

    # --- lifecycle ---------------------------------------------------------
    async def aclose(self) -> None:
        """
        Close the underlying async HTTP client. Safe to call multiple times.
        """
        client = getattr(self, "_client", None)
        close = getattr(client, "close", None)
        if close:
            await close()

    async def __aenter__(self) -> "BaseAsyncLLM":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
