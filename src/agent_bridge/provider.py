from __future__ import annotations

import os
from enum import StrEnum
from typing import Final, Optional

from dotenv import load_dotenv

from agent_bridge.errors import NotConfiguredError

load_dotenv()


class Provider(StrEnum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"

    @classmethod
    def parse(cls, name: "str | Provider") -> "Provider":
        """Resolve a provider name, raising NotConfiguredError if unknown."""
        key = str(name).strip().lower()
        key = _ALIASES.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise NotConfiguredError(f"Unsupported provider: {name}") from None


_ALIASES: Final[dict[str, str]] = {"gemini": "google"}

_ENV_VARS: Final[dict[Provider, tuple[str, ...]]] = {
    Provider.OPENAI: ("OPENAI_API_KEY",),
    Provider.ANTHROPIC: ("ANTHROPIC_API_KEY",),
    Provider.GOOGLE: ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}


def find_api_key(provider: Provider) -> Optional[str]:
    """Return the API key for *provider* from the environment, if any."""
    for env_var in _ENV_VARS[provider]:
        value = os.environ.get(env_var)
        if value:
            return value
    return None


def get_api_key(provider: Provider) -> str:
    """Return the API key for *provider* or raise NotConfiguredError."""
    key = find_api_key(provider)
    if key is None:
        names = " or ".join(_ENV_VARS[provider])
        raise NotConfiguredError(f"{names} missing")
    return key


__all__ = ["Provider", "find_api_key", "get_api_key"]
