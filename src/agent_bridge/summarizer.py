"""
Conversation compaction for long-running sessions.

When the estimated token count reaches a share of the model's context window,
the middle of the history is replaced by a single summary message. The system
prompt, the goal and the most recent exchanges are kept verbatim.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol, Sequence

from agent_bridge.config import SummarizerConfig
from agent_bridge.errors import SummarizationError
from agent_bridge.types import ChatResponse, Message, Role

__all__ = [
    "SUMMARY_PREFIX",
    "ContextWindowManager",
    "SummarizingLLM",
    "is_context_window_error",
]

logger = logging.getLogger(__name__)

SUMMARY_PREFIX = "**Previous conversation summary:**\n"

SUMMARIZER_SYSTEM_PROMPT = (
    "You are an expert at summarizing technical conversations. "
    "Provide concise, accurate summaries that preserve key information."
)

# Messages quoted in the summary request before truncating
MAX_QUOTED_MESSAGES = 21

CONTEXT_WINDOW_ERROR_PATTERNS = (
    "context_length_exceeded",
    "context window",
    "context length",
    "too many tokens",
    "token limit",
    "maximum context",
    "exceeds the limit",
    "context size",
    "request too large",
    "prompt too long",
    "prompt is too long",
)


class SummarizingLLM(Protocol):
    """What the manager needs from an LLM: token accounting and plain chat."""

    def estimate_tokens(self, messages: Sequence[Message]) -> int: ...

    def get_context_length(self) -> int: ...

    async def chat(
        self, messages: Sequence[Message], *, params: Optional[dict[str, Any]] = None
    ) -> ChatResponse: ...


def is_context_window_error(exc: Optional[BaseException]) -> bool:
    """True if *exc* reads like a vendor rejecting an oversized prompt."""
    if exc is None:
        return False
    text = str(exc).lower()
    original = getattr(exc, "original_exc", None)
    if original is not None:
        text = f"{text} {original}".lower()
    return any(pattern in text for pattern in CONTEXT_WINDOW_ERROR_PATTERNS)


class ContextWindowManager:
    """Decides when to compact a conversation and performs the compaction."""

    def __init__(self, config: Optional[SummarizerConfig] = None) -> None:
        self.config = config or SummarizerConfig()

    def should_summarize(self, llm: SummarizingLLM, messages: Sequence[Message]) -> bool:
        threshold = llm.get_context_length() * self.config.summarize_at_percent // 100
        return llm.estimate_tokens(messages) >= threshold

    async def summarize_conversation(
        self,
        llm: SummarizingLLM,
        messages: Sequence[Message],
        keep_conversations: Optional[int] = None,
    ) -> list[Message]:
        """
        Return a compacted copy of *messages*.

        The result is ``[system?, goal?, summary, *recent]``. ``recent`` holds
        the last ``keep_conversations`` exchanges, widened or narrowed so that
        it starts at a user message and never begins with an orphaned tool
        result. When nothing lies between the head and ``recent`` the input is
        returned unchanged (as a new list).

        Raises:
            SummarizationError: the summary request failed. *messages* is
                never modified.
        """
        keep = keep_conversations if keep_conversations and keep_conversations > 0 else (
            self.config.keep_conversations
        )
        head, middle, recent = split_history(messages, keep * 2)
        if not middle:
            return list(messages)

        request = [
            Message.system(SUMMARIZER_SYSTEM_PROMPT),
            Message.user(build_summary_prompt(middle)),
        ]
        logger.info("Summarizing %d of %d messages", len(middle), len(messages))
        try:
            response = await llm.chat(request)
        except Exception as exc:
            raise SummarizationError(f"failed to generate summary: {exc}") from exc

        summary = Message.assistant(SUMMARY_PREFIX + response.content)
        return [*head, summary, *recent]


def split_history(
    messages: Sequence[Message], keep_recent: int
) -> tuple[list[Message], list[Message], list[Message]]:
    """Partition *messages* into ``(head, middle, recent)``."""
    rest = list(messages)
    head: list[Message] = []
    if rest and rest[0].role is Role.SYSTEM:
        head.append(rest.pop(0))
    if rest and rest[0].role is Role.USER:
        head.append(rest.pop(0))

    start = len(rest) - keep_recent
    if start <= 0:
        return head, [], rest

    window = rest[start:]
    first_user = next(
        (i for i, msg in enumerate(window) if msg.role is Role.USER), None
    )
    if first_user is not None:
        start += first_user
    else:
        # No user turn in the window: at least never start on a tool result
        while start < len(rest) and rest[start].role is Role.TOOL:
            start += 1

    return head, rest[:start], rest[start:]


def build_summary_prompt(messages: Sequence[Message]) -> str:
    lines = [
        "Please summarize the following technical conversation concisely. Focus on:",
        "1. Commands executed and their purposes",
        "2. Key findings or issues discovered",
        "3. Important progress made toward the goal",
        "4. Any errors or challenges encountered",
        "",
        "Conversation to summarize:",
        "",
    ]
    for index, msg in enumerate(messages):
        if index >= MAX_QUOTED_MESSAGES:
            lines.append("... (additional messages truncated for brevity)\n")
            break
        if msg.role is Role.USER:
            lines.append(f"Human: {msg.content}\n")
        elif msg.role is Role.ASSISTANT:
            calls = "".join(
                f"\n[called {call.function_name} {call.arguments_json}]" for call in msg.tool_calls
            )
            lines.append(f"Assistant: {msg.content}{calls}\n")
        elif msg.role is Role.TOOL:
            lines.append(f"Tool output: {msg.content}\n")

    lines.append("Please provide a clear, concise summary in 2-3 paragraphs.")
    return "\n".join(lines)
