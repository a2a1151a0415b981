"""
Runtime configuration objects.

File-based configuration belongs to the driver; these dataclasses are what
it hands over. ``from_env`` reads the same values from the process
environment (after ``.env`` has been loaded by :mod:`agent_bridge.provider`).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Optional

from agent_bridge.provider import Provider, find_api_key

__all__ = ["ProviderConfig", "SummarizerConfig"]

DEFAULT_SUMMARIZE_AT_PERCENT = 70
DEFAULT_KEEP_CONVERSATIONS = 1


def _env_int(name: str) -> Optional[int]:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


@dataclass
class ProviderConfig:
    """Credentials and model selection for one provider."""

    api_key: Optional[str] = None
    model: Optional[str] = None
    base_url: Optional[str] = None
    # Overrides the built-in context window table when positive
    context_length: Optional[int] = None
    timeout: float = 60.0
    params: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_env(cls, provider: Provider, **overrides: Any) -> "ProviderConfig":
        timeout = os.environ.get("AGENT_BRIDGE_TIMEOUT")
        values: dict[str, Any] = {
            "api_key": find_api_key(provider),
            "model": os.environ.get("AGENT_BRIDGE_MODEL") or None,
            "base_url": os.environ.get("AGENT_BRIDGE_BASE_URL") or None,
            "context_length": _env_int("AGENT_BRIDGE_CONTEXT_LENGTH"),
        }
        if timeout:
            values["timeout"] = float(timeout)
        values.update(overrides)
        return cls(**values)


@dataclass
class SummarizerConfig:
    """When to compact history and how much of it to keep verbatim."""

    summarize_at_percent: int = DEFAULT_SUMMARIZE_AT_PERCENT
    keep_conversations: int = DEFAULT_KEEP_CONVERSATIONS

    def __post_init__(self) -> None:
        if self.summarize_at_percent <= 0:
            self.summarize_at_percent = DEFAULT_SUMMARIZE_AT_PERCENT
        if self.keep_conversations <= 0:
            self.keep_conversations = DEFAULT_KEEP_CONVERSATIONS

    @classmethod
    def from_env(cls) -> "SummarizerConfig":
        return cls(
            summarize_at_percent=_env_int("AGENT_BRIDGE_SUMMARIZE_AT_PERCENT") or 0,
            keep_conversations=_env_int("AGENT_BRIDGE_KEEP_CONVERSATIONS") or 0,
        )
