"""rag: a streaming chat agent for OpenAI-compatible endpoints.

Each turn runs through an ordered hook pipeline: input transforms expand
``@file(...)`` and ``@`cmd` `` tokens, the reply is streamed and rendered as
it arrives, and tool calls requested by the model are executed locally and
fed back for a follow-up answer.
"""

from rag._version import __version__

# Turn pipeline
from rag.pipeline import TurnContext, TurnPipeline, TurnResult, TurnState
from rag.hooks import HookPoint

# Conversation and data types
from rag.conversation import ConversationState
from rag.protocols import FinishReason, Message, Role, StreamedDelta, TokenUsage, ToolCall, ToolCallFragment

# Streaming
from rag.stream import StreamReducer, StreamResult, parse_chunk

# Input transforms
from rag.transforms import TransformChain, default_chain

# Tools
from rag.toolkit import (
    FunctionTool,
    Tool,
    ToolCallAccumulator,
    ToolMetaData,
    ToolRegistry,
    ToolResult,
    default_registry,
    function_tool,
)

# Configuration
from rag.models.config import Config, load_config, save_config

# Transport
from rag.llm import ChatTransport, OpenAIClient

# Exceptions
from rag.exceptions import (
    ArgumentParseError,
    ConfigError,
    DuplicateToolError,
    HookError,
    RagError,
    StreamError,
    ToolError,
    ToolExecutionError,
    ToolRegistrationError,
    UnknownToolError,
)

__all__ = [
    "__version__",
    "TurnContext",
    "TurnPipeline",
    "TurnResult",
    "TurnState",
    "HookPoint",
    "ConversationState",
    "FinishReason",
    "Message",
    "Role",
    "StreamedDelta",
    "TokenUsage",
    "ToolCall",
    "ToolCallFragment",
    "StreamReducer",
    "StreamResult",
    "parse_chunk",
    "TransformChain",
    "default_chain",
    "FunctionTool",
    "Tool",
    "ToolCallAccumulator",
    "ToolMetaData",
    "ToolRegistry",
    "ToolResult",
    "default_registry",
    "function_tool",
    "Config",
    "load_config",
    "save_config",
    "ChatTransport",
    "OpenAIClient",
    "ArgumentParseError",
    "ConfigError",
    "DuplicateToolError",
    "HookError",
    "RagError",
    "StreamError",
    "ToolError",
    "ToolExecutionError",
    "ToolRegistrationError",
    "UnknownToolError",
]
