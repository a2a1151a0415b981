"""Static context window sizes per provider and model."""

from __future__ import annotations

from typing import Final, Optional

from agent_bridge.provider import Provider

GENERIC_CONTEXT_LENGTH: Final = 4096

CONTEXT_LENGTHS: Final[dict[Provider, dict[str, int]]] = {
    Provider.OPENAI: {
        "gpt-4": 8192,
        "gpt-4-turbo": 128_000,
        "gpt-4o": 128_000,
        "gpt-4o-mini": 128_000,
        "gpt-4.1": 1_047_576,
        "gpt-4.1-mini": 1_047_576,
        "gpt-4.1-nano": 1_047_576,
        "gpt-5": 400_000,
        "o1": 200_000,
        "o1-mini": 128_000,
        "o3": 200_000,
        "o3-mini": 200_000,
        "o4-mini": 200_000,
        "gpt-3.5-turbo": 16_385,
    },
    Provider.ANTHROPIC: {
        "claude-3-haiku-20240307": 200_000,
        "claude-3-sonnet-20240229": 200_000,
        "claude-3-opus-20240229": 200_000,
        "claude-3-5-sonnet-20241022": 200_000,
        "claude-3-5-haiku-20241022": 200_000,
        "claude-3-7-sonnet": 200_000,
        "claude-sonnet-4": 200_000,
        "claude-opus-4": 200_000,
    },
    Provider.GOOGLE: {
        "gemini-1.5-flash": 1_048_576,
        "gemini-1.5-pro": 2_097_152,
        "gemini-2.0-flash": 1_048_576,
        "gemini-2.0-flash-lite": 1_048_576,
        "gemini-2.5-flash": 1_048_576,
        "gemini-2.5-pro": 1_048_576,
    },
}

PROVIDER_FALLBACKS: Final[dict[Provider, int]] = {
    Provider.OPENAI: 8192,
    Provider.ANTHROPIC: 200_000,
    Provider.GOOGLE: 1_048_576,
}


def default_context_length(provider: Optional[Provider], model: Optional[str]) -> int:
    """
    Look up the context window of *model*.

    Exact names win; otherwise the longest known prefix is used so dated
    snapshots ("gpt-4o-2024-08-06") resolve to their family.
    """
    if provider is None:
        return GENERIC_CONTEXT_LENGTH

    table = CONTEXT_LENGTHS.get(provider, {})
    if model:
        if model in table:
            return table[model]
        prefixes = [name for name in table if model.startswith(name)]
        if prefixes:
            return table[max(prefixes, key=len)]

    return PROVIDER_FALLBACKS.get(provider, GENERIC_CONTEXT_LENGTH)
