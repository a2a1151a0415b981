"""
Agent Bridge - one conversation, three LLM vendors, federated tools.
"""

from .client import UnifiedLLM, create_llm
from .config import ProviderConfig, SummarizerConfig
from .errors import (
    AgentBridgeError,
    ConversationError,
    InvalidArgumentsError,
    InvalidSchemaError,
    NotConfiguredError,
    ProtocolMismatchError,
    RemoteToolError,
    ServerUnreachableError,
    SummarizationError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    UnsupportedOperationError,
    UpstreamError,
)
from .provider import Provider, get_api_key
from .providers import AnthropicLLM, BaseAsyncLLM, GeminiLLM, OpenAILLM
from .summarizer import ContextWindowManager, is_context_window_error
from .tools import (
    MCPServer,
    MCPServerConfig,
    ShellExecutor,
    ToolFederation,
    ToolRegistry,
    default_registry,
)
from .types import (
    ChatResponse,
    FinishReason,
    Message,
    ParameterSpec,
    Role,
    ToolCall,
    ToolDefinition,
    ToolParameters,
    Usage,
)

__version__ = "0.1.0"

__all__ = [
    "UnifiedLLM",
    "create_llm",
    "ProviderConfig",
    "SummarizerConfig",
    "AgentBridgeError",
    "ConversationError",
    "InvalidArgumentsError",
    "InvalidSchemaError",
    "NotConfiguredError",
    "ProtocolMismatchError",
    "RemoteToolError",
    "ServerUnreachableError",
    "SummarizationError",
    "ToolError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "UnsupportedOperationError",
    "UpstreamError",
    "Provider",
    "get_api_key",
    "AnthropicLLM",
    "BaseAsyncLLM",
    "GeminiLLM",
    "OpenAILLM",
    "ContextWindowManager",
    "is_context_window_error",
    "MCPServer",
    "MCPServerConfig",
    "ShellExecutor",
    "ToolFederation",
    "ToolRegistry",
    "default_registry",
    "ChatResponse",
    "FinishReason",
    "Message",
    "ParameterSpec",
    "Role",
    "ToolCall",
    "ToolDefinition",
    "ToolParameters",
    "Usage",
]
