"""
Request parameter normalization for agent-bridge.

Public API
- Callers pass a dict to `params` on `chat`, `chat_with_tools` or `stream`,
  and may set per-provider defaults on `ProviderConfig.params`.

Contract
- Standard keys work across providers:
  temperature: float
  max_tokens: int
  top_p: float
  stop: str | list[str]
  seed: int
  user: str
  tool_choice: str | dict
  parallel_tool_calls: bool
  frequency_penalty: float
  presence_penalty: float

- Provider specific keys go under `extra` and pass through unchanged.
  Examples:
    extra.reasoning_effort: "low" | "medium" | "high"
    extra.top_k: int

Unknown top-level keys are moved into extra.
Tools and streaming are not params: use `chat_with_tools` and `stream`.
"""

from __future__ import annotations

from typing import Any, Optional

__all__ = ["STANDARD_KEYS", "RESERVED_KEYS", "normalize_params", "merge_params"]

STANDARD_KEYS = frozenset(
    {
        "temperature",
        "max_tokens",
        "top_p",
        "stop",
        "seed",
        "user",
        "tool_choice",
        "parallel_tool_calls",
        "frequency_penalty",
        "presence_penalty",
    }
)

# The adapters own these request fields.
RESERVED_KEYS = frozenset({"messages", "model", "tools", "stream", "system"})


def normalize_params(params: Optional[dict[str, Any]]) -> dict[str, Any]:
    """
    Normalize a user-supplied params dict to a single internal shape.

    Returns a dict with standard keys plus an `extra` dict. None values are
    dropped so adapters only see what the caller actually set.

    Example
    -------
    >>> normalize_params({"temperature": 0.2, "top_k": 40, "extra": {"seed": 1}})
    {'temperature': 0.2, 'extra': {'top_k': 40, 'seed': 1}}
    """
    if params is None:
        return {"extra": {}}
    if not isinstance(params, dict):
        raise TypeError(f"params must be a dict, got {type(params).__name__}")

    user_extra = params.get("extra") or {}
    if not isinstance(user_extra, dict):
        raise TypeError("params['extra'] must be a dict")

    reserved = RESERVED_KEYS.intersection(params) | RESERVED_KEYS.intersection(user_extra)
    if reserved:
        raise ValueError(f"params may not set {sorted(reserved)}")

    std: dict[str, Any] = {}
    extra: dict[str, Any] = {}
    for key, value in params.items():
        if key == "extra" or value is None:
            continue
        if key in STANDARD_KEYS:
            std[key] = value
        else:
            extra[key] = value

    # Moved unknowns first, then the caller's explicit extra wins
    std["extra"] = {**extra, **{k: v for k, v in user_extra.items() if v is not None}}
    return std


def merge_params(
    defaults: Optional[dict[str, Any]], overrides: Optional[dict[str, Any]]
) -> dict[str, Any]:
    """
    Shallow-merge provider defaults with per-call overrides, then normalize.

    Rules:
      - Top-level keys are overwritten by overrides
      - `extra` is merged with overrides winning per key
    """
    base = normalize_params(defaults)
    over = normalize_params(overrides)
    merged_extra = {**base.pop("extra"), **over.pop("extra")}
    return {**base, **over, "extra": merged_extra}
