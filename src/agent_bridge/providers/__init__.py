"""SDK-backed LLM clients for each supported provider."""

from .base import BaseAsyncLLM, RequestAdapter
from .openai import OpenAILLM
from .anthropic import AnthropicLLM
from .gemini import GeminiLLM

__all__ = [
    "BaseAsyncLLM",
    "RequestAdapter",
    "OpenAILLM",
    "AnthropicLLM",
    "GeminiLLM",
]
