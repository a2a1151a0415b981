from .chat import ChatResponse, FinishReason, Message, Role, ToolCall, Usage
from .conversation import Conversation, is_settled, unanswered_tool_calls, validate_conversation
from .tool import ParameterSpec, ToolDefinition, ToolHandler, ToolParameters

__all__ = [
    "ChatResponse",
    "FinishReason",
    "Message",
    "Role",
    "ToolCall",
    "Usage",
    "Conversation",
    "is_settled",
    "unanswered_tool_calls",
    "validate_conversation",
    "ParameterSpec",
    "ToolDefinition",
    "ToolHandler",
    "ToolParameters",
]
